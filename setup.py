from setuptools import setup, find_packages

setup(
    name="dessim",
    version="0.1.0",
    description="Process-oriented discrete event simulation kernel",
    author="adamfilli",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    install_requires=[
        "pandas",
    ],
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    python_requires=">=3.10",
)
