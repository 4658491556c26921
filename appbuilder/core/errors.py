from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class AppBuilderError(Exception):
    code: str
    message: str
    data: dict[str, Any] | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ConfigurationError(AppBuilderError):
    pass


class DependencyLoadError(AppBuilderError):
    pass


class FrameworkInitError(AppBuilderError):
    pass


class NotBootstrappedError(AppBuilderError):
    pass
