from setuptools import setup, find_packages

setup(
    name="cv-experiment-pipeline",
    version="0.1",
    description="Reproducible k-fold cross-validation pipeline for binary classification on tabular data with gradient-boosted models.",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main", "run_from_config"],
    install_requires=[
        "pandas>=1.5.3",
        "numpy>=1.24.4",
        "pyyaml>=6.0.1",
        "boto3>=1.28.57",
        "matplotlib>=3.7.2",
        "seaborn>=0.12.2",
        "shap>=0.43.0",
        "scikit-learn>=1.2.2",
        "lightgbm>=4.0.0",
        "joblib>=1.2.0"
    ],
    extras_require={
        "autogluon": ["autogluon.tabular>=0.8.2"],
        "test": ["pytest>=7.0"]
    },
    python_requires=">=3.8",
    author="Your Name",
    author_email="your.email@example.com",
    url="https://github.com/yourusername/cv-experiment-pipeline",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
