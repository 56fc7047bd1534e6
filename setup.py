# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""Setup configuration for meshheal."""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")
else:
    long_description = "meshheal - Triangle mesh repair for STL files"

setup(
    name="meshheal",
    version="0.1.0",
    description="Repair triangle soups into consistently oriented, watertight solids",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Allard Peper (Dragon Ace)",
    license="Apache License 2.0",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.11",
    install_requires=[
        "numpy>=1.24",
        "trimesh>=4.0",
        "click>=8.0",
        "scipy>=1.9",  # cKDTree for nearby edge matching
        "PyYAML>=6.0",  # Repair option files
    ],
    extras_require={
        "tests": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "meshheal=meshheal.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Manufacturing",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Graphics :: 3D Modeling",
        "Topic :: Scientific/Engineering",
    ],
    keywords="3d mesh repair stl 3d-printing",
)
