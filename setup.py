"""Setup configuration for section-test."""

from setuptools import setup, find_packages

setup(
    name="section-test",
    version="0.1.0",
    description="Nested test sections with subprocess-isolated expected failures",
    packages=find_packages(include=["section_test", "section_test.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml>=6.0",
        "click>=8.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "section-test=section_test.cli:main",
        ],
    },
)
