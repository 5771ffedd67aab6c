from setuptools import setup, find_namespace_packages

setup(
    name="amrdata",
    version="0.1.0",
    description="Resource and data management for patch-based AMR simulations: quantities, patch data, guards and overlaps.",
    author="amrdata developers",
    license="GPL-3.0",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",

    # Package discovery, subpackages carry no __init__.py
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["amrdata", "amrdata.*"]),

    # Python version requirement
    python_requires=">=3.11",

    # Core dependencies
    install_requires=[
        "numpy>=2.1.1",
    ],

    # Test dependencies
    extras_require={
        "test": [
            "pytest>=8.3.4",
        ],
    },
)
