"""
Explicit cache and rate limit key builders.

Keys are plain strings assembled from caller-supplied parts, never from
serialized argument objects, so equal requests always produce equal keys.
"""


def _require(part: str, name: str) -> str:
    part = str(part).strip() if part is not None else ''
    if not part:
        raise ValueError(f"{name} cannot be empty")
    return part


def cache_key(namespace: str, *parts: str) -> str:
    """
    Build a cache key such as ``portfolio:0xabc:1``.
    
    Args:
        namespace: Endpoint or provider namespace
        *parts: Additional identifying parts, in a fixed order
    
    Returns:
        Colon-joined key
    """
    segments = [_require(namespace, 'namespace')]
    segments.extend(_require(part, 'key part') for part in parts)
    return ':'.join(segments)


def client_key(ip: str, path: str = '') -> str:
    """
    Build a per-client rate limit key, optionally scoped to an endpoint path.
    
    ``ip`` may be a raw X-Forwarded-For value; only the first address is used.
    """
    ip = _require(ip, 'ip').split(',')[0].strip()
    path = (path or '').strip()
    return f"ip:{ip}:{path}" if path else f"ip:{ip}"


def address_key(address: str) -> str:
    """Build a per-wallet rate limit key; addresses are case-insensitive."""
    return f"address:{_require(address, 'address').lower()}"
