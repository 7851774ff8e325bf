# setup.py
from setuptools import setup, find_packages

setup(
    name="tumblr_mirror",
    version="0.1.0",
    description="Mirrors a Tumblr blog into a local SQLite file",
    packages=find_packages(exclude=("tests", "tests.*")),
    install_requires=[
        "aiohttp>=3.9",
        "aiosqlite>=0.19",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "lxml>=5.0",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.4", "pytest-asyncio>=0.23"],
    },
    entry_points={
        "console_scripts": ["tumblr-mirror=tumblr_mirror.cli:cli"],
    },
    python_requires=">=3.11",
)
