from setuptools import setup, find_namespace_packages

setup(
    name="hudreader",
    version="0.1.0",
    description="Golf simulator HUD shot data extraction via OCR and a vision model",
    author="HUD Reader",
    packages=find_namespace_packages(include=["hudreader", "hudreader.*"]),
    python_requires=">=3.11",
    install_requires=[
        "PyQt6>=6.6.0",
        "opencv-python-headless>=4.9.0",
        "numpy>=1.26.0",
        "pytesseract>=0.3.10",
    ],
    extras_require={
        "ai": ["anthropic>=0.40.0"],
        "test": ["pytest>=8.0", "pytest-qt>=4.4.0", "anthropic>=0.40.0"],
    },
    entry_points={
        "console_scripts": [
            "hudreader=hudreader.main:main",
        ],
    },
)
