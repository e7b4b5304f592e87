"""
Lexis setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="lexis",
    version="1.0.0",
    description="Lexis — Label translation engine with async remote sources",
    packages=find_packages(include=["lexis", "lexis.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "lexis=lexis.cli:main",
        ],
    },
    install_requires=[
        "pydantic>=2.5",
        "pyyaml>=6.0",
        "httpx>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
