from __future__ import annotations

from typing import Any

from appbuilder.registry.app_class import AppClass
from appbuilder.trace import events

from .errors import FrameworkInitError


STRIPPED_CONFIG_KEYS = ("home", "root")


def realize_app_class(builder: Any) -> AppClass:
    """
    Realize builder.app_name in the builder's registry, at most once.

    1. reuse an existing realized application class
    2. load superclasses, last listed first
    3. create the class descriptor
    4. drop home/root config inherited from a parent application
    5. activate the framework on it

    A failed activation puts back whatever the registry held for the name
    before step 3, and the name stays failed for the registry's lifetime.
    """
    registry = builder.registry
    name = builder.app_name
    trace = builder.trace

    with registry.lock_for(name):
        if registry.has_failed(name):
            raise FrameworkInitError(
                code="framework.init_failed",
                message=f"Framework activation already failed for {name}",
                data={"app_name": name},
            )

        existing = registry.find(name)
        if existing is not None and registry.is_realized(name):
            if trace is not None:
                trace.emit(events.CLASS_REUSED, app_name=name, message="Using existing application class")
            return existing

        version = builder.version
        superclasses = builder.superclasses or []
        for cls_name in reversed(superclasses):
            if not builder.loader.is_loaded(cls_name):
                builder.loader.load(cls_name, builder)
                if trace is not None:
                    trace.emit(events.DEPENDENCY_LOADED, app_name=name, data={"class": cls_name})

        previous = registry.find(name)
        app = registry.create(name, version=version, superclasses=superclasses, home=builder.home, pending=True)
        if trace is not None:
            trace.emit(events.CLASS_CREATED, app_name=name, data={"version": version, "superclasses": list(superclasses)})

        if registry.is_app(name):
            removed = app.strip_config(*STRIPPED_CONFIG_KEYS)
            if removed and trace is not None:
                trace.emit(events.CONFIG_STRIPPED, app_name=name, data={"keys": removed})

        try:
            builder.framework.activate(app)
        except FrameworkInitError as e:
            registry.restore(name, previous)
            if trace is not None:
                trace.emit(events.ERROR, app_name=name, message=e.message, data={"code": e.code})
                trace.emit(events.CLASS_ROLLED_BACK, app_name=name, data={"restored": previous is not None})
            raise
        if trace is not None:
            trace.emit(events.FRAMEWORK_ACTIVATED, app_name=name)
        return app
