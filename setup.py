from setuptools import find_packages, setup

setup(
    name="docbatch",
    version="0.1.0",
    description="Batched document reads for Cloud Firestore with built-in client metrics",
    packages=find_packages(include=["docbatch", "docbatch.*"]),
    install_requires=[
        "google-cloud-firestore>=2.16.0",
        "google-api-core[grpc]>=2.17.0",
        "google-auth>=2.20.0",
        "grpcio>=1.60.0",
        "opentelemetry-api>=1.27.0",
        "opentelemetry-sdk>=1.27.0",
        "opentelemetry-exporter-gcp-monitoring>=1.7.0a0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "python-dotenv>=1.0.0",
        "python-json-logger>=3.1.0",
        "toml>=0.10.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "docbatch-get=docbatch.cli:main",
        ],
    },
    python_requires=">=3.9",
)
