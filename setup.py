# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Setup configuration for roinstall, the read-only image package installer
"""

from setuptools import setup, find_packages

setup(
    name="roinstall",
    version="1.0.0",
    description="Concurrent, crash-safe installer for SquashFS image packages",
    author="Jason Cafarelli",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.11",
    install_requires=[
        "httpx>=0.25.0",
        "aiofiles>=23.2.0",
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
        "PySquashfsImage>=0.9.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "roinstall=roinstall.cli:main",
        ]
    },
)
