from setuptools import setup, find_packages

setup(
    name="ledgersync",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pandas",
        "numpy",
        "requests",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "ledgersync-sms=ledgersync.cli:sms_main",
            "ledgersync-wise=ledgersync.cli:wise_main",
            "ledgersync-foreign=ledgersync.cli:foreign_main",
        ],
    },
    description="Imports bank SMS notifications into YNAB and reconciles multi-currency balances",
    python_requires=">=3.8",
)
