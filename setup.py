import os

from setuptools import find_packages, setup

if os.path.exists("MANIFEST"):
    os.remove("MANIFEST")

with open("README.md") as file:
    long_description = file.read()

install_requires = [
    "more-itertools>=8.4",
    "numpy>=1.17.5",
    "packaging>=20.9",
    "tomli>=1.2.3;python_version < '3.11'",
    "tomli-w>=0.4.0",
]

extras_require = {
    "test": [
        "pytest>=6.1",
    ],
}


if __name__ == "__main__":
    setup(
        name="amrex-reader",
        version="0.3.0",  # keep in sync with amrex_reader/_version.py
        description="Random-access subdomain extraction from single-level AMReX plotfiles",
        long_description=long_description,
        long_description_content_type="text/markdown",
        license="BSD-3-Clause",
        packages=find_packages(include=["amrex_reader", "amrex_reader.*"]),
        python_requires=">=3.8",
        install_requires=install_requires,
        extras_require=extras_require,
        classifiers=[
            "Intended Audience :: Science/Research",
            "Programming Language :: Python :: 3",
            "Topic :: Scientific/Engineering :: Physics",
        ],
    )
