"""
Lazy facets with explicit override chains.

A facet value is computed on first read by its OverrideChain:

    layers[0](builder, parent) -> layers[1](builder, parent) -> ... -> base(builder)

Layers are most-derived first. Each layer receives `parent`, a zero-arg
callable evaluating the rest of the chain, and may call it and transform
the result, or ignore it. The result is validated and cached in a LazyCell
for the lifetime of the builder.
"""
from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import jsonschema

from .errors import ConfigurationError


BuildFunc = Callable[[Any], Any]
OverrideFunc = Callable[[Any, Callable[[], Any]], Any]


FACET_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "version": {"type": "string", "minLength": 1},
    "superclasses": {"type": ["array", "null"], "items": {"type": "string", "minLength": 1}},
    "config": {"type": "object"},
    "plugins": {"type": "array", "items": {"type": "string", "minLength": 1}},
    "home": {"type": "string", "minLength": 1},
}


class OverrideChain:
    def __init__(self, facet: str, base: BuildFunc, layers: Tuple[OverrideFunc, ...] = ()):
        self._facet = facet
        self._base = base
        self._layers = tuple(layers)

    @property
    def facet(self) -> str:
        return self._facet

    @property
    def base(self) -> BuildFunc:
        return self._base

    @property
    def layers(self) -> Tuple[OverrideFunc, ...]:
        return self._layers

    def extend(self, fn: OverrideFunc) -> "OverrideChain":
        return OverrideChain(self._facet, self._base, (fn,) + self._layers)

    def evaluate(self, builder: Any) -> Any:
        def call(i: int) -> Any:
            if i >= len(self._layers):
                return self._base(builder)
            return self._layers[i](builder, lambda: call(i + 1))

        return call(0)

    def __repr__(self) -> str:
        names = [getattr(fn, "__qualname__", repr(fn)) for fn in self._layers]
        return f"OverrideChain({self._facet!r}, layers={names})"


def override(facet: str) -> Callable[[OverrideFunc], OverrideFunc]:
    """
    Mark a Builder method as an override layer for `facet`:

        @override("config")
        def _config(self, parent):
            config = parent()
            config["View"] = {...}
            return config
    """

    def deco(fn: OverrideFunc) -> OverrideFunc:
        fn.__appbuilder_facet__ = facet  # type: ignore[attr-defined]
        return fn

    return deco


def collect_overrides(namespace: Dict[str, Any]) -> Dict[str, OverrideFunc]:
    out: Dict[str, OverrideFunc] = {}
    for value in namespace.values():
        facet = getattr(value, "__appbuilder_facet__", None)
        if not isinstance(facet, str):
            continue
        if facet in out:
            raise ConfigurationError(
                code="facet.duplicate_override",
                message=f"More than one override for facet {facet} in one class",
                data={"facet": facet},
            )
        out[facet] = value
    return out


def normalize_facet(facet: str, value: Any) -> Any:
    if isinstance(value, tuple):
        value = list(value)
    if facet == "home" and isinstance(value, Path):
        value = str(value)
    return value


def validate_facet(facet: str, value: Any, app_name: Optional[str] = None) -> Any:
    value = normalize_facet(facet, value)
    schema = FACET_SCHEMAS.get(facet)
    if schema is None:
        return value
    errors = [e.message for e in jsonschema.Draft202012Validator(schema).iter_errors(value)]
    if errors:
        raise ConfigurationError(
            code="facet.invalid",
            message=f"Invalid value for {facet}",
            data={"facet": facet, "app_name": app_name, "errors": errors},
        )
    return value


_EMPTY = object()
_BUILDING = object()


class LazyCell:
    """
    One memoized facet value: empty -> building -> set, never reset.

    The build runs under a re-entrant lock: a second thread reading the cell
    waits for the value, while the building thread reading it again is a cycle.
    """

    def __init__(self, facet: str):
        self._facet = facet
        self._value: Any = _EMPTY
        self._lock = threading.RLock()

    @property
    def is_set(self) -> bool:
        return self._value is not _EMPTY and self._value is not _BUILDING

    def set(self, value: Any) -> None:
        with self._lock:
            if self.is_set:
                raise ConfigurationError(code="facet.immutable", message=f"{self._facet} is already set", data={"facet": self._facet})
            self._value = value

    def get(self, compute: Callable[[], Any]) -> Any:
        if self.is_set:
            return self._value
        with self._lock:
            # Only the thread holding the lock can observe _BUILDING here.
            if self._value is _BUILDING:
                raise ConfigurationError(
                    code="facet.cycle",
                    message=f"Facet {self._facet} depends on itself",
                    data={"facet": self._facet},
                )
            if self._value is _EMPTY:
                self._value = _BUILDING
                try:
                    value = compute()
                except BaseException:
                    self._value = _EMPTY
                    raise
                self._value = value
            return self._value


class Facet:
    """
    Read-only lazy attribute backed by the owner's LazyCell for `name`.
    """

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, obj: Any, owner: Optional[type] = None) -> Any:
        if obj is None:
            return self
        return obj._resolve(self.name)

    def __set__(self, obj: Any, value: Any) -> None:
        raise AttributeError(f"{self.name} is read-only")
