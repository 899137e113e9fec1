from setuptools import setup, find_packages

setup(
    name="solvrf",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["cli"],
    install_requires=[
        "pynacl>=1.5",
        "solders>=0.21",
        "solana>=0.34",
        "httpx>=0.23",
        "base58>=2.1",
        "borsh-construct>=0.1.0",
        "construct>=2.10",
    ],
    entry_points={
        "console_scripts": [
            "solvrf=cli:main",
        ],
    },
    python_requires=">=3.8",
)
