#!/usr/bin/env python3
"""
Setup configuration for the Hybrid Recommendation Engine
"""

from setuptools import setup, find_packages

# Read the contents of README file
from pathlib import Path
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

setup(
    name="hybrid-recommendation-engine",
    version="1.0.0",
    author="Hybrid Recommendation Engine Team",
    description="Hybrid recommendation engine ranking communities and events for community platforms",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],
    python_requires=">=3.9",
    install_requires=[
        # Core Dependencies
        "numpy>=1.24.0",

        # Utilities
        "pydantic>=2.0.0",

        # Configuration
        "pyyaml>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-benchmark>=4.0.0",
            "hypothesis>=6.82.0",
        ],
    },
    include_package_data=True,
    package_data={
        "hybrid_recommender": [
            "config/*.yaml",
        ],
    },
    zip_safe=False,
    keywords="recommendation-engine hybrid collaborative-filtering content-based communities events",
)
