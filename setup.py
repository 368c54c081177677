"""Setup configuration for AWS Opt-in Regions Automation."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="aws-opt-in-regions-automation",
    version="1.0.0",
    author="Landing Zone Automation Team",
    description="CloudFormation custom resource handlers that enable opt-in AWS regions across accounts",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.11",
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0,<9"],
    },
    entry_points={
        "console_scripts": [
            "opt-in-regions=opt_in_regions.cli:main",
        ],
    },
)
