# setup.py
from setuptools import setup, find_packages

setup(
    name="scope_spider",
    version="0.1.0",
    description="Асинхронный краулер ScopeSpider: ссылки, формы, JS-эндпоинты, поддомены и S3-бакеты в пределах домена",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"scope_spider": ["templates/*.j2"]},
    include_package_data=True,
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "Jinja2>=3.1",
        "lxml>=5.0",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": ["scope-spider=scope_spider.cli:cli"],
    },
    python_requires=">=3.11",
)
