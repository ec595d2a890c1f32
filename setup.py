#!/usr/bin/env python3
"""
respkv Setup Script
===================
Allows installation of the respkv package.

Usage:
    pip install -e .           # Development install
    pip install -e .[test]     # With test dependencies
"""

from setuptools import setup, find_packages

setup(
    name="respkv",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*", "scripts"]),
    python_requires=">=3.10",
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "respkv=respkv.server:main",
        ],
    },
)
