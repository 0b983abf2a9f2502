"""Setup script for Cosmic Daily."""

from setuptools import setup, find_namespace_packages

setup(
    name="cosmicdaily",
    version="1.0.0",
    description="Cached fetching of NASA's Astronomy Picture of the Day",
    python_requires=">=3.11",
    packages=find_namespace_packages(include=["cosmicdaily", "cosmicdaily.*"]),
    py_modules=["main"],
    install_requires=[
        "anyio>=4.6",
        "asyncer>=0.0.8",
        "aiofiles>=23.2",
        "httpx>=0.27",
        "pydantic>=2.7",
        "pydantic-settings>=2.3",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "respx>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "cosmicdaily=main:main",
        ],
    },
)
