from __future__ import annotations

from typing import Optional

from appbuilder.registry.class_registry import ClassRegistry

from .framework import Framework


_DEFAULT_REGISTRY: Optional[ClassRegistry] = None
_DEFAULT_FRAMEWORK: Optional[Framework] = None


def default_registry() -> ClassRegistry:
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        _DEFAULT_REGISTRY = ClassRegistry()
    return _DEFAULT_REGISTRY


def default_framework() -> Framework:
    global _DEFAULT_FRAMEWORK
    if _DEFAULT_FRAMEWORK is None:
        _DEFAULT_FRAMEWORK = Framework(default_registry())
    return _DEFAULT_FRAMEWORK


def reset_defaults() -> None:
    global _DEFAULT_REGISTRY, _DEFAULT_FRAMEWORK
    _DEFAULT_REGISTRY = None
    _DEFAULT_FRAMEWORK = None
