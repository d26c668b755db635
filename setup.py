"""Setup configuration for repohealth"""

from setuptools import setup, find_packages

setup(
    name="repo-health",
    version="0.1.0",
    description=(
        "CLI tool for weekly GitHub health metrics: issue and pull request "
        "throughput, resolution time, review latency and CI check duration."
    ),
    author="Repo Health Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "repo-health=repohealth.main:main",
        ],
    },
)
