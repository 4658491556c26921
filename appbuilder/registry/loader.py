from __future__ import annotations

import importlib
import inspect
import threading
from pathlib import Path
from typing import Any, Iterable, List, Optional

from appbuilder.core.errors import ConfigurationError, DependencyLoadError

from .class_registry import ClassRegistry


SPEC_SUFFIXES = (".yml", ".yaml", ".json")


def import_object(spec: str) -> Any:
    """
    Import by "module:attr" spec.
    """
    if ":" not in spec:
        raise ConfigurationError(code="builder.invalid", message="builder spec must be 'module:object'", data={"builder": spec})
    mod_name, attr = spec.split(":", 1)
    if not mod_name or not attr:
        raise ConfigurationError(code="builder.invalid", message="builder spec must be 'module:object'", data={"builder": spec})
    try:
        mod = importlib.import_module(mod_name)
    except (ImportError, TypeError, ValueError) as e:
        raise ConfigurationError(code="builder.not_found", message="Failed to import builder module", data={"module": mod_name}) from e
    if not hasattr(mod, attr):
        raise ConfigurationError(code="builder.not_found", message="Builder object not found in module", data={"module": mod_name, "attr": attr})
    return getattr(mod, attr)


class DependencyLoader:
    """
    Load-if-absent for superclass names.

    Sources, in order:
    - builder spec files <spec_dir>/<name>.(yml|yaml|json)
    - a Python module importable as <name>; it may register the class itself
      or expose APP_BUILDER (a Builder subclass or "module:Class")

    A loaded superclass is realized and bootstrapped without setup, so its
    config is in place before subclasses inherit it. Loading a name that is
    already being loaded further up the same thread's stack is an inheritance
    cycle (A.yml lists B, B.yml lists A).
    """

    def __init__(self, registry: ClassRegistry, spec_dirs: Iterable[Path] = (), import_modules: bool = True):
        self._registry = registry
        self._spec_dirs: List[Path] = [Path(d) for d in spec_dirs]
        self._import_modules = import_modules
        self._local = threading.local()

    def _in_progress(self) -> List[str]:
        stack = getattr(self._local, "loading", None)
        if stack is None:
            stack = []
            self._local.loading = stack
        return stack

    def is_loaded(self, name: str) -> bool:
        return self._registry.find(name) is not None

    def ensure_loaded(self, name: str, builder: Any) -> None:
        if not self.is_loaded(name):
            self.load(name, builder)

    def find_spec_file(self, name: str) -> Optional[Path]:
        for d in self._spec_dirs:
            for suffix in SPEC_SUFFIXES:
                p = d / f"{name}{suffix}"
                if p.is_file():
                    return p
        return None

    def load(self, name: str, builder: Any) -> None:
        loading = self._in_progress()
        if name in loading:
            chain = loading[loading.index(name):] + [name]
            raise DependencyLoadError(
                code="dependency.cycle",
                message=f"Inheritance cycle while loading {name}: {' -> '.join(chain)}",
                data={"class": name, "chain": chain},
            )

        loading.append(name)
        try:
            spec_path = self.find_spec_file(name)
            if spec_path is not None:
                self._load_spec_file(name, spec_path, builder)
            elif self._import_modules:
                self._load_module(name, builder)
        finally:
            loading.pop()

        if not self.is_loaded(name):
            raise DependencyLoadError(
                code="dependency.load_failed",
                message=f"Could not load class: {name}",
                data={"class": name},
            )

    def _load_spec_file(self, name: str, path: Path, builder: Any) -> None:
        from appbuilder.builder_spec import builder_from_spec, load_builder_spec

        spec = load_builder_spec(path)
        if spec.get("app_name") != name:
            raise DependencyLoadError(
                code="dependency.load_failed",
                message=f"Spec file {path} does not define {name}",
                data={"class": name, "path": str(path), "app_name": spec.get("app_name")},
            )
        child = builder_from_spec(
            spec,
            base_dir=path.parent,
            registry=builder.registry,
            loader=self,
            framework=builder.framework,
            trace=builder.trace,
        )
        child.bootstrap()

    def _load_module(self, name: str, builder: Any) -> None:
        try:
            mod = importlib.import_module(name)
        except (ImportError, TypeError, ValueError) as e:
            # TypeError/ValueError: names like ".rel" or "" that are not importable at all.
            raise DependencyLoadError(
                code="dependency.load_failed",
                message=f"Could not load class: {name}",
                data={"class": name, "error": repr(e)},
            ) from e

        target = getattr(mod, "APP_BUILDER", None)
        if target is None or self.is_loaded(name):
            return
        if isinstance(target, str):
            target = import_object(target)
        if not inspect.isclass(target):
            raise DependencyLoadError(
                code="dependency.load_failed",
                message=f"APP_BUILDER in {name} must be a Builder class",
                data={"class": name},
            )
        builder.derive(target, name).bootstrap()
