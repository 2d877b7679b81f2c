from setuptools import setup, find_packages

setup(
    name="incremental-editor",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml",
        # Dependency graph
        "networkx>=3.0",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "incremental-editor=incremental_editor.cli:main",
        ],
    },
    description="Decode, verify and apply agent-proposed source edits.",
)
