# setup.py
from setuptools import setup, find_packages

setup(
    name="site_health",
    version="0.1.0",
    description="Асинхронный краулер здоровья сайтов SiteHealth: 404 и битые ссылки",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"site_health.report": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "click>=8.1",
        "Jinja2>=3.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "site-health=site_health.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
