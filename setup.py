from setuptools import setup, find_packages
import os

install_requires = ["pydantic>=2"]

# Define optional dependencies for development and specific features
extras_require = {"dev": ["pytest"], "lsp": ["pygls>=1.0.0,<2"]}  # Language Server Protocol support

setup(
    name="fratmscript-compiler",
    version="0.1.0",
    packages=find_packages(where=".", exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "fratm = fratm.cli:main",
        ],
    },
    include_package_data=True,
    package_data={},
    description="A compiler from FratmScript, JavaScript in Neapolitan dialect, to plain JavaScript.",
    long_description=open("README.md", encoding="utf-8").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
)
