# setup.py
from setuptools import setup, find_packages

setup(
    name="survey-analysis",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "__pycache__"]),
    install_requires=[
        "pandas>=2.2.0",
        "numpy>=1.26.1",
        "matplotlib>=3.7",
        "seaborn~=0.13.2",
        "scikit-learn>=1.5.1",
        "scipy>=1.10",
        "prince~=0.16.0",
        "PyYAML~=6.0.2",
        "rich>=13.0",
    ],
    extras_require={
        "test": [
            "pytest~=8.3.5",
        ],
    },
    entry_points={
        "console_scripts": [
            "survey-analysis=survey_analysis.pipeline:main",
        ],
    },
)
