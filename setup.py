from setuptools import setup, find_packages

setup(
    name="reradar",
    version="0.4.0",
    description="reRadar flight-tracking backend",
    package_dir={"": "backend"},
    packages=find_packages(where="backend"),
    package_data={"reradar": ["datasets/*.json", "datasets/*.csv"]},
    python_requires=">=3.10",
    install_requires=[
        "httpx>=0.23",
        "fastapi>=0.95",
        "uvicorn>=0.22",
        "python-dateutil>=2.8",
        "python-dotenv>=1.0",
        "geopy>=2.4",
        # "python-opensky", "beautifulsoup4" removed – Flightradar24 via httpx
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-httpx>=0.30",
        ],
        "lint": [
            "black>=23.0",
            "flake8>=6.0",
        ],
    },
    entry_points={"console_scripts": ["reradar=reradar.main:run"]},
)
