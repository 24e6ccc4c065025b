from setuptools import setup, find_packages

setup(
    name="relaychat",
    version="1.0.0",
    description="TCP broadcast relay server with an operator console",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "colorama",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "relaychat-server = relaychat.console:main",
        ],
    },
    python_requires=">=3.10",
)
