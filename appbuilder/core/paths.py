from __future__ import annotations

from typing import List

from appbuilder.registry.class_registry import ClassRegistry

from .errors import NotBootstrappedError


def require_realized(registry: ClassRegistry, app_name: str) -> None:
    if not registry.is_realized(app_name):
        raise NotBootstrappedError(
            code="app.not_bootstrapped",
            message=f"{app_name} has not been realized yet",
            data={"app_name": app_name},
        )


def inherited_path_to(registry: ClassRegistry, app_name: str, *fragments: str) -> List[str]:
    """
    Resolve `fragments` against every application class in the hierarchy of
    `app_name`, most-derived first, framework root excluded.

    Example:
      Child -> Parent -> Application
      inherited_path_to(reg, "Child", "root") == [<Child home>/root, <Parent home>/root]
    """
    require_realized(registry, app_name)
    return [registry.require(c).path_to(*fragments) for c in registry.app_ancestors(app_name)]


def app_path_to(registry: ClassRegistry, app_name: str, *fragments: str) -> str:
    require_realized(registry, app_name)
    return registry.require(app_name).path_to(*fragments)
