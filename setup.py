# setup.py
from setuptools import setup, find_packages

setup(
    name="findatex-schema",           # the *distribution* name on PyPI
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),   # will find findatex_schema/
    install_requires=["pandas", "PyYAML"],
    python_requires=">=3.10",
    include_package_data=True,        # so we can bundle the JSON catalogs
    package_data={
        "findatex_schema.schemas": ["*.json"],
    },
    entry_points={
        "console_scripts": ["findatex-validate=findatex_schema.cli:main"],
    },
    description="Schema-driven validator for FinDatEx EPT and TPT reports",
    author="Your Name",
    license="Creative Commons Attribution-NonCommercial-ShareAlike 4.0 International License",
)
