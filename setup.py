from setuptools import setup, find_packages

setup(
    name="uiauto-heal",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pyyaml>=5.4",
        "jsonschema>=4.0.0",
        "pillow>=8.0.0",
    ],
    extras_require={
        "webdriver": ["selenium>=4.0.0"],
        "test": ["pytest>=7.0", "selenium>=4.0.0"],
    },
    python_requires=">=3.8",
    package_data={
        "uiauto_heal": ["schemas/*.json"],
    },
    entry_points={
        "console_scripts": [
            "uiauto-heal=uiauto_heal.cli:main",
        ],
    },
)
