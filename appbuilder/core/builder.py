from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from appbuilder.registry.app_class import DEBUG_FLAG, AppClass
from appbuilder.registry.class_registry import ClassRegistry
from appbuilder.registry.loader import DependencyLoader
from appbuilder.trace import events
from appbuilder.trace.trace_emitter import TraceEmitter

from . import paths
from .bootstrap_context import BootstrapContext
from .defaults import default_framework, default_registry
from .errors import ConfigurationError
from .framework import Framework
from .lazy import Facet, LazyCell, OverrideChain, collect_overrides, validate_facet
from .synthesis import realize_app_class


DEFAULT_VERSION = "0.00001"

_MISSING = object()


def build_version(builder: "Builder") -> str:
    return DEFAULT_VERSION


def build_superclasses(builder: "Builder") -> Optional[List[str]]:
    return None


def build_config(builder: "Builder") -> Dict[str, Any]:
    return {"name": builder.app_name}


def build_plugins(builder: "Builder") -> List[str]:
    plugins: List[str] = []
    if builder.debug:
        plugins.insert(0, DEBUG_FLAG)
    return plugins


def build_home(builder: "Builder") -> str:
    # Directory of the module that defines the concrete builder subclass.
    cls = type(builder)
    module = sys.modules.get(cls.__module__)
    path = getattr(module, "__file__", None)
    if cls is not Builder and isinstance(path, str) and path:
        return str(Path(path).resolve().parent)
    return str(Path.cwd())


BASE_BUILDERS = {
    "version": build_version,
    "superclasses": build_superclasses,
    "config": build_config,
    "plugins": build_plugins,
    "home": build_home,
}


def compose_chains(cls: type) -> Dict[str, OverrideChain]:
    """
    Compose one OverrideChain per facet from every @override in cls's MRO,
    so that the most-derived class ends up first.
    """
    chains = {facet: OverrideChain(facet, base) for facet, base in BASE_BUILDERS.items()}
    for klass in reversed(cls.__mro__):
        for facet, fn in collect_overrides(vars(klass)).items():
            if facet not in chains:
                raise ConfigurationError(
                    code="facet.unknown",
                    message=f"Cannot override unknown facet: {facet}",
                    data={"facet": facet, "builder": klass.__qualname__},
                )
            chains[facet] = chains[facet].extend(fn)
    return chains


class Builder:
    """
    Programmatic builder for one application class.

    Facets (version, superclasses, config, plugins, home) are computed on
    first read through their override chain and cached for the builder's
    lifetime. Subclasses adjust a single facet without touching the others:

        class MyBuilder(Builder):
            @override("plugins")
            def _plugins(self, parent):
                return parent() + ["Session"]

    app_meta realizes the class in the registry, once per class name.
    """

    default_app_name: Optional[str] = None

    version = Facet()
    superclasses = Facet()
    config = Facet()
    plugins = Facet()
    home = Facet()

    _chains: Dict[str, OverrideChain] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._chains = compose_chains(cls)

    def __init__(
        self,
        app_name: Optional[str] = None,
        *,
        debug: bool = False,
        version: Any = _MISSING,
        superclasses: Any = _MISSING,
        config: Any = _MISSING,
        plugins: Any = _MISSING,
        home: Any = _MISSING,
        registry: Optional[ClassRegistry] = None,
        loader: Optional[DependencyLoader] = None,
        framework: Optional[Framework] = None,
        trace: Optional[TraceEmitter] = None,
    ):
        app_name = app_name if app_name is not None else self.default_app_name
        if not isinstance(app_name, str) or not app_name:
            raise ConfigurationError(code="builder.invalid", message="app_name must be a non-empty string")
        self._app_name = app_name
        self._debug = bool(debug)

        if registry is None and framework is not None:
            registry = framework.registry
        if registry is None:
            registry = default_registry()
            framework = framework or default_framework()
        self._registry = registry
        self._framework = framework or Framework(registry)
        self._loader = loader or DependencyLoader(registry)
        self._trace = trace

        self._cells: Dict[str, LazyCell] = {facet: LazyCell(facet) for facet in self._chains}
        self._app_cell = LazyCell("app_meta")

        explicit = {"version": version, "superclasses": superclasses, "config": config, "plugins": plugins, "home": home}
        for facet, value in explicit.items():
            if value is not _MISSING:
                self._cells[facet].set(validate_facet(facet, value, app_name))

    @classmethod
    def chain(cls, facet: str) -> OverrideChain:
        chain = cls._chains.get(facet)
        if chain is None:
            raise KeyError(facet)
        return chain

    @property
    def app_name(self) -> str:
        return self._app_name

    @property
    def debug(self) -> bool:
        return self._debug

    @property
    def registry(self) -> ClassRegistry:
        return self._registry

    @property
    def framework(self) -> Framework:
        return self._framework

    @property
    def loader(self) -> DependencyLoader:
        return self._loader

    @property
    def trace(self) -> Optional[TraceEmitter]:
        return self._trace

    def _resolve(self, facet: str) -> Any:
        return self._cells[facet].get(lambda: self._build(facet))

    def _build(self, facet: str) -> Any:
        value = validate_facet(facet, self._chains[facet].evaluate(self), self._app_name)
        if self._trace is not None:
            self._trace.emit(events.FACET_BUILT, app_name=self._app_name, facet=facet)
        return value

    def is_built(self, facet: str) -> bool:
        if facet == "app_meta":
            return self._app_cell.is_set
        return self._cells[facet].is_set

    @property
    def app_meta(self) -> AppClass:
        return self._app_cell.get(lambda: realize_app_class(self))

    class_handle = app_meta

    def bootstrap(self, context: Optional[BootstrapContext] = None) -> AppClass:
        """
        Realize the class, apply config, and run setup when `context` says
        this is the entry point or a test harness.
        """
        ctx = context or BootstrapContext()
        app = self.app_meta
        app.set_config(self.config)
        if self._trace is not None:
            self._trace.emit(events.CONFIG_APPLIED, app_name=self._app_name, data={"keys": sorted(self.config.keys())})

        if not ctx.should_setup:
            if self._trace is not None:
                self._trace.emit(events.SETUP_SKIPPED, app_name=self._app_name, message="Not the entry point")
            return app

        self._framework.setup(app, self.plugins)
        if self._trace is not None:
            self._trace.emit(events.SETUP_RUN, app_name=self._app_name, data={"plugins": list(self.plugins)})
        return app

    def inherited_path_to(self, *fragments: str) -> List[str]:
        return paths.inherited_path_to(self._registry, self._app_name, *fragments)

    def app_path_to(self, *fragments: str) -> str:
        return paths.app_path_to(self._registry, self._app_name, *fragments)

    def derive(self, builder_cls: Optional[Type["Builder"]] = None, app_name: Optional[str] = None, **values: Any) -> "Builder":
        cls = builder_cls or Builder
        return cls(
            app_name,
            registry=self._registry,
            loader=self._loader,
            framework=self._framework,
            trace=self._trace,
            **values,
        )

    def describe(self) -> Dict[str, Any]:
        return {
            "app_name": self._app_name,
            "debug": self._debug,
            "version": self.version,
            "superclasses": self.superclasses,
            "config": self.config,
            "plugins": self.plugins,
            "home": self.home,
        }


Builder._chains = compose_chains(Builder)
