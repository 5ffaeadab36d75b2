"""Package setup for preset-snapshot."""

from setuptools import setup

setup(
    name="preset-snapshot",
    version="1.0.0",
    description="Snapshot Preset teams, members and audit logs into static JSON and browse them",
    packages=[
        "preset_sdk",
        "preset_snapshot",
        "preset_snapshot.core",
        "preset_snapshot.commands",
    ],
    python_requires=">=3.9",
    install_requires=[
        "httpx>=0.24.0",
        "pydantic>=2.0.0",
        "typer>=0.9.0",
        "rich>=13.0.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0.0"],
    },
    entry_points={
        "console_scripts": [
            "preset-snapshot=preset_snapshot.cli:app",
        ],
    },
)
