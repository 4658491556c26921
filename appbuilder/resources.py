from __future__ import annotations

from pathlib import Path


def package_dir() -> Path:
    return Path(__file__).resolve().parent


def contracts_dir() -> Path:
    """
    Directory that contains shipped contract artifacts (JSON Schemas).
    """
    return package_dir() / "contracts"


def contract_schema_path(schema_filename: str) -> Path:
    return contracts_dir() / schema_filename
