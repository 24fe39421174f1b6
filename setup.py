from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="orbitmag",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "numpy>=1.20.0",
        "pyyaml>=5.4.1",
        "sgp4>=2.20",
        "skyfield>=1.45",
    ],
    extras_require={
        "igrf": [
            "igrf>=13.0",
        ],
        "dev": [
            "pytest>=6.0",
            "pytest-cov>=2.12",
            "black>=21.5b2",
            "mypy>=0.910",
            "pylint>=2.8.2",
            "flake8>=3.9.2",
        ],
    },
    entry_points={
        "console_scripts": [
            "orbitmag=orbitmag.main:main",
        ],
    },
    description="Geomagnetic field along a low-Earth satellite orbit",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Topic :: Scientific/Engineering :: Physics",
    ],
    python_requires=">=3.8",
)
