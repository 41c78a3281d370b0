"""
Setup script for lbm_fluid package.
"""

from setuptools import setup, find_packages

setup(
    name="lbm_fluid",
    version="0.1.0",
    description="D2Q9 Lattice Boltzmann solver for 2D flow around obstacles",
    author="Andrey",
    packages=find_packages(include=["lbm_fluid", "lbm_fluid.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.20",
        "numba>=0.56",
        "matplotlib>=3.5",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
        "dev": ["pytest>=7.0", "black", "flake8"],
    },
)
