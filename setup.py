from setuptools import setup, find_packages

setup(
    name="venice-client",
    version="0.1.0",
    packages=find_packages(include=["venice_client", "venice_client.*"]),
    install_requires=[
        "httpx>=0.27",
        "pydantic>=2",
        "pydantic-settings>=2",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "respx",
        ],
    },
    python_requires=">=3.11",
)
