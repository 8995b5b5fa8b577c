"""
Setup script for jira-notifier
"""
from setuptools import setup, find_packages

setup(
    name="jira-notifier",
    version="0.1.0",
    packages=find_packages(include=["jira_notifier", "jira_notifier.*"]),
    python_requires=">=3.9",
    install_requires=[
        "httpx>=0.27.0",
        "pydantic>=2.8.0",
        "PyJWT>=2.8.0",
        "cryptography>=42.0.0",
        "python-dotenv>=1.0.1",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.24",
            "fastapi>=0.115.0",
        ],
    },
    description="Signed webhook delivery of CI build and deployment events to Jira",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
