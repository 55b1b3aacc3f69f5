#!/usr/bin/env python3
"""
Setup script for the catalog API service.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text() if readme_file.exists() else ""

# Read requirements
requirements_file = Path(__file__).parent / "requirements.txt"
requirements = []
if requirements_file.exists():
    requirements = [
        line.strip()
        for line in requirements_file.read_text().splitlines()
        if line.strip() and not line.startswith("#")
    ]

setup(
    name="catalog-api",
    version="0.1.0",
    description="Read-only HTTP edge for a versioned artifact catalog",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Catalog API Contributors",
    packages=find_packages(include=["catalog_api", "catalog_api.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=requirements + [
        "uvicorn>=0.30.0",
        "python-dotenv>=1.0.0",
        "click>=8.1.0",
        "aiofiles>=23.2.1",
        "redis>=5.0.1",
        "boto3>=1.34.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "httpx>=0.24.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "catalog-api=catalog_api.cli.__main__:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    ],
    keywords="catalog registry artifacts asgi http api",
)
