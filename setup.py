#!/usr/bin/env python
from setuptools import setup, find_packages

install_requires = """
    numpy
    numba
    tomli; python_version < "3.11"
    """.strip().splitlines()

tests_require = ["pytest"]

package_list = find_packages(where='.', exclude=['test', 'test.*'])

setup(
    name="rfmodel",
    version="0.1",
    packages=package_list,
    description="Area-normalized Gaussian receptive field models",
    python_requires=">=3.10",
    install_requires=[req.strip() for req in install_requires],
    extras_require={"test": tests_require},
)
