from setuptools import find_packages, setup

setup(
    name="dynamo-cdc",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=["boto3>=1.26.0", "botocore>=1.29.0"],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
            "pytest-cov",
            "moto[s3,events,sqs]>=5.0",
        ],
        "dev": [
            "boto3-stubs[s3,events]",
            "mypy",
            "pylint",
            "black",
        ],
    },
)
