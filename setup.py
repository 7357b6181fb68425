from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="apex-genesis",
    license="MIT",
    version="0.1.0",
    author="Apex Genesis",
    description="Connection and resilience layer for the Apex Genesis dashboard: liveness checks for the hosted database, backend API, real-time websocket and local storage, with automatic reconnection and backoff.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords=["Apex Genesis", "health check", "reconnection", "backoff", "asyncio"],
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Framework :: AsyncIO",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "aiofiles>=23.2.1",
        "httpx>=0.27",
        "python-dotenv>=1.0.1",
        "websockets>=12.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
)
