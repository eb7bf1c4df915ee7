from setuptools import setup, find_packages

setup(
    name="unit_editor",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "requests",
        "pyyaml",
        "tree-sitter>=0.22",
        "tree-sitter-go",
        "tqdm>=4.60",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "uniteditor=unit_editor.cli:main",
        ],
    },
    author="Uday Kanth",
    description="Edit Go projects one declaration unit at a time with an LLM.",
)
