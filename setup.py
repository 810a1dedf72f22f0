#!/usr/bin/env python3
"""
memkv Setup Script
==================
Allows installation of the memkv package.

Usage:
    pip install -e .           # Development install
    pip install -e .[test]     # Development install with test tools
    pip install .              # Regular install
"""

from setuptools import setup, find_packages

setup(
    name="memkv",
    version="1.0.0",
    description="In-process thread-safe key-value store with TTL expiration",
    packages=find_packages(include=["memkv", "memkv.*"]),
    python_requires=">=3.10",
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
)
