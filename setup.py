from setuptools import setup, find_packages

setup(
    name="token-dapp",
    version="0.1.0",
    description="Bulk ERC-20 token transfers, approvals and transaction history over a token REST service",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="Token Dapp Contributors",
    packages=find_packages(include=["token_dapp", "token_dapp.*"]),
    install_requires=[
        "rich>=10.0.0",
        "python-dotenv>=0.19.0",
        "requests>=2.26.0",
        "pandas>=1.3.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    entry_points={
        "console_scripts": [
            "token-dapp=token_dapp.cli:main",
        ],
    },
)
