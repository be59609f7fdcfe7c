"""Setup script for the mqtt2tsdb package."""

from setuptools import find_packages, setup

setup(
    name="mqtt2tsdb",
    version="0.1.0",
    description="MQTT to TimescaleDB bridge for topic-encoded sensor readings",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "psycopg2-binary",
        "pyyaml",
        "python-dotenv",
        "paho-mqtt>=2.0.0",
    ],
    extras_require={
        "dev": [
            "pytest",
            "black",
            "isort",
            "mypy",
        ],
    },
    entry_points={
        "console_scripts": [
            "mqtt2tsdb=mqtt2tsdb.bridge:main",
        ],
    },
)
