#!/usr/bin/env python3
"""
Setup script for hrt_optimizer (hormone dose-schedule optimizer) package
"""

from setuptools import setup, find_packages

with open("requirements.txt", "r") as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith("#")]

setup(
    name="hrt-optimizer",
    version="1.0.0",
    author="HRT Schedule Optimizer Team",
    description="Pharmacokinetic dose-schedule optimizer for injectable and non-injectable hormone medications",
    long_description="Greedy multi-phase local search fitting estradiol/progesterone schedules to reference cycles",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Scientific/Engineering :: Medical Science Apps.",
    ],
)
