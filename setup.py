# setup.py
from setuptools import setup, find_packages

setup(
    name="budget-tracker",
    version="0.1.0",
    description="Personal budget tracker: REST API, dashboard and spreadsheet import/export",
    author="Your Name",
    author_email="you@example.com",
    url="https://github.com/yourusername/budget-tracker",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"webapp": ["templates/*.html"]},
    python_requires=">=3.10",
    install_requires=[
        "click>=8.0",
        "pyyaml>=5.3",
        "pandas>=1.1",
        "openpyxl>=3.0",
        "xlsxwriter>=3.0",
        "python-dotenv>=1.0",
        "fastapi>=0.100",
        "uvicorn>=0.23",
        "jinja2>=3.0",
        "python-multipart>=0.0.6",
        "psycopg2-binary>=2.9",
        "mcp>=1.0,<2",
        "anyio>=3.7",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "httpx>=0.24",
        ],
    },
    entry_points={
        "console_scripts": [
            "budget-tracker=budget_tracker.cli:main",
            "budget-tracker-mcp=budget_tracker.mcp_server:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
