# setup.py
from setuptools import setup, find_packages
from pathlib import Path
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

setup(
    name="paradoc",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src", include=["paradoc", "paradoc.*"]),
    description="Document to text conversion that OCRs only the pages whose text layer is unusable.",
    long_description=long_description,
    long_description_content_type='text/markdown',
    python_requires=">=3.9",

    install_requires=[
        "PyMuPDF",
        "pytesseract",
        "Pillow",
        "numpy",
        "tqdm",
        "python-slugify",
        "tiktoken",
    ],
    extras_require={
        "easyocr": [
            "easyocr",
            "torch",
            "torchvision",
        ],
        "test": [
            "pytest",
        ],
    },
    entry_points={
        'console_scripts': [
            'paradoc=paradoc.cli:main',
        ],
    },
)
