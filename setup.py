from pathlib import Path

from setuptools import find_packages, setup


def load_requirements() -> list[str]:
    requirements_path = Path(__file__).with_name("requirements.txt")
    if not requirements_path.exists():
        return []
    lines = requirements_path.read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip() and not line.startswith("#")]


setup(
    name="f1_results_ingest",
    version="0.1.0",
    description="F1 results ingestion into a relational store",
    packages=find_packages(exclude=("tests",)),
    py_modules=["f1_data_ingest"],
    install_requires=load_requirements(),
    extras_require={"test": ["pytest>=7.0"]},
)
