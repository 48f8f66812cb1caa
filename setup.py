#!/usr/bin/env python3
"""
filekv Setup Script
===================
Allows installation of the filekv package.

Usage:
    pip install -e .           # Development install
    pip install -e ".[test]"   # Development install with test tools
    pip install .              # Regular install
"""

from setuptools import setup, find_packages

setup(
    name="filekv",
    version="1.0.0",
    packages=find_packages(include=["filekv", "filekv.*"]),
    python_requires=">=3.10",
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "filekv=filekv.server:main",
            "filekv-client=filekv.client:main",
        ],
    },
)
