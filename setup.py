"""
Setup configuration for provider-orchestration component.
"""

from setuptools import setup, find_packages

setup(
    name='provider-orchestration',
    version='1.0.0',
    description='Cache, single-flight, rate limiting and bounded queueing for upstream provider calls',
    author='Dashboard Backend Team',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.11',
    install_requires=[
        'boto3>=1.28.0',
        'botocore>=1.31.0',
    ],
    extras_require={
        'dev': [
            'pytest>=7.4.0',
            'pytest-asyncio>=0.21.0',
            'pytest-cov>=4.1.0',
            'flake8>=6.0.0',
            'black>=23.0.0',
            'mypy>=1.4.0',
        ]
    }
)
