# setup.py
from setuptools import setup, find_packages

setup(
    name="order_scout",
    version="0.1.0",
    description="OrderScout: поиск страницы онлайн-заказов в ревизиях сайтов",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"order_scout.report": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "click>=8.1",
        "pydantic>=2.5",
        "PyYAML>=6.0",
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
            "order-scout=order_scout.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
