# -*- coding: utf-8 -*-
from setuptools import setup, find_packages

long_description = "Streaming-consistent technical indicators: batch and bar-by-bar results that agree bit for bit"

setup(
    name = "pandas-ta-live",
    packages = find_packages(exclude=["tests", "tests.*", "scripts"]),
    version = "0.1.0",
    description=long_description,
    long_description=long_description,
    author = "Kevin Johnson",
    author_email = "appliedmathkj@gmail.com",
    maintainer="Han Sang Woo",
    maintainer_email="hsangwoo5@naver.com",
    keywords = ['technical analysis', 'python3', 'pandas', 'streaming', 'incremental'],
    license="The MIT License (MIT)",
    python_requires=">=3.8",
    classifiers = [
        'Programming Language :: Python :: 3',
        'Development Status :: 3 - Alpha',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Intended Audience :: Developers',
        'Intended Audience :: Financial and Insurance Industry',
        'Topic :: Office/Business :: Financial :: Investment',
    ],
    install_requires=['pandas', 'numpy', 'loguru'],

    # List additional groups of dependencies here (e.g. development dependencies).
    # You can install these using the following syntax, for example:
    # $ pip install -e .[dev,test]
    extras_require = {
        'dev': ['ta-lib', 'jupyterlab'],
        'test': ['pytest'],
        'talib': ['ta-lib'],
    },
)
