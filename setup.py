# setup.py
from setuptools import setup, find_packages
import os

# Version lives in the package so the CLI and LSP report the same string
about = {}
with open(os.path.join("dpm", "__init__.py")) as f:
    for line in f:
        if line.startswith("__version__"):
            exec(line, about)

setup(
    name="dpm",
    version=about["__version__"],
    description="Docker project manager driven by a small Lisp-like command language",
    packages=find_packages(include=["dpm", "dpm.*", "dpm_lsp", "dpm_lsp.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pygls>=1.0,<2",
        "lsprotocol",
    ],
    extras_require={
        "test": ["pytest", "hypothesis"],
    },
    entry_points={
        "console_scripts": [
            "dpm = dpm.cli:main",
            "dpm-ls = dpm_lsp.server:main",
        ],
    },
    zip_safe=False,
)
