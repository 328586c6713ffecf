"""
Setup script for hookshot
"""
from setuptools import setup, find_packages

setup(
    name="hookshot",
    version="0.1.0",
    packages=find_packages(include=["hookshot", "hookshot.*"]),
    python_requires=">=3.10",
    install_requires=[
        "httpx>=0.27.0",
        "pydantic>=2.8.0",
        "cryptography>=42.0.0",
        "python-dotenv>=1.0.1",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
    description="hookshot - build, sign and self-verify webhook requests",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
