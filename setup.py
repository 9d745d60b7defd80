#!/usr/bin/env python3
"""
Setup script for gsmlink.
"""

from setuptools import setup, find_packages

setup(
    name="gsmlink",
    version="0.1.0",
    description="Python library for talking to GSM phones and modems via AT commands",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "pyserial>=3.5",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-timeout>=2.1.0",
        ],
        "test": [
            "pytest>=7.4.0",
            "pytest-timeout>=2.1.0",
        ],
    },
    keywords=["gsm", "phone", "modem", "sms", "at-commands", "serial"],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Communications",
        "Topic :: Communications :: Telephony",
        "License :: OSI Approved :: MIT License",
    ],
)
