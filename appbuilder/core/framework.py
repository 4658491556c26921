from __future__ import annotations

from typing import Callable, List, Sequence, Tuple

from appbuilder.registry.app_class import AppClass
from appbuilder.registry.class_registry import ClassRegistry

from .errors import FrameworkInitError


Hook = Callable[[AppClass], None]


def split_plugins(plugins: Sequence[str]) -> Tuple[List[str], List[str]]:
    """
    Split a plugin list into (flags, plugin names). Flags start with "-".
    """
    flags: List[str] = []
    names: List[str] = []
    for p in plugins:
        if p.startswith("-"):
            flags.append(p)
        else:
            names.append(p[1:] if p.startswith("+") else p)
    return flags, names


class Framework:
    """
    Host framework seam: activation (mix the framework base behavior into a
    class, once) and setup (start the class with its plugins).

    Hard rules:
    - activation is guarded by AppClass.activated
    - a failed activation is recorded on the registry and never retried for
      that class name, whichever Framework asks
    """

    def __init__(self, registry: ClassRegistry):
        self._registry = registry
        self._activate_hooks: List[Hook] = []
        self._setup_hooks: List[Hook] = []

    @property
    def registry(self) -> ClassRegistry:
        return self._registry

    def on_activate(self, hook: Hook) -> Hook:
        self._activate_hooks.append(hook)
        return hook

    def on_setup(self, hook: Hook) -> Hook:
        self._setup_hooks.append(hook)
        return hook

    def has_failed(self, name: str) -> bool:
        return self._registry.has_failed(name)

    def activate(self, app: AppClass) -> AppClass:
        if self._registry.has_failed(app.name):
            raise FrameworkInitError(
                code="framework.init_failed",
                message=f"Framework activation already failed for {app.name}",
                data={"app_name": app.name},
            )
        if app.activated:
            return app

        bases = list(app.bases)
        try:
            if not self._registry.is_app(app.name):
                app.bases.append(self._registry.root_name)
                self._registry.linearize(app.name)
            for hook in self._activate_hooks:
                hook(app)
        except Exception as e:  # noqa: BLE001
            app.bases = bases
            self._registry.mark_failed(app.name)
            raise FrameworkInitError(
                code="framework.init_failed",
                message=f"Framework activation failed for {app.name}",
                data={"app_name": app.name, "error": repr(e)},
            ) from e

        app.activated = True
        app.pending = False
        return app

    def setup(self, app: AppClass, plugins: Sequence[str]) -> AppClass:
        if app.is_setup:
            raise FrameworkInitError(
                code="framework.already_setup",
                message=f"{app.name} has already been set up",
                data={"app_name": app.name},
            )
        flags, names = split_plugins(plugins)
        previous = (app.flags, app.plugins)
        app.flags = flags
        app.plugins = names
        try:
            for hook in self._setup_hooks:
                hook(app)
        except Exception as e:  # noqa: BLE001
            app.flags, app.plugins = previous
            raise FrameworkInitError(
                code="framework.setup_failed",
                message=f"Framework setup failed for {app.name}",
                data={"app_name": app.name, "error": repr(e)},
            ) from e
        app.is_setup = True
        return app
