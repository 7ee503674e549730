from setuptools import setup, find_packages

setup(
    name="logiq_client",
    version="0.1.0",
    description="LogIQ client - JSON-RPC 2.0 over WebSocket with event fan-out",
    author="LogIQ Team",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    install_requires=[
        "websockets>=14.0",
        "opentelemetry-api>=1.14.0",
        "opentelemetry-sdk>=1.14.0",
        "opentelemetry-exporter-otlp>=1.14.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov",
            "black",
            "isort",
            "pylint",
        ],
    },
    python_requires=">=3.9",
)
