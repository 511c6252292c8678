from setuptools import setup


setup(
    name="projstat",
    version="0.1.0",
    description="Project status views over publicly shared Google Sheets, with fallback retrieval and role-aware filtering",
    packages=["projstat"],
    python_requires=">=3.9",
    install_requires=[
        "pandas",
        "chardet",
        "openpyxl",
        "streamlit",
        "requests",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "projstat=projstat.cli:main",
        ]
    },
)
