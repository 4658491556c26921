from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from appbuilder.core.errors import ConfigurationError


DEBUG_FLAG = "-Debug"


def merge_config(left: Mapping[str, Any], right: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Deep-merge two config maps. Nested dicts are merged key by key, anything
    else on the right replaces the left value.
    """
    out: Dict[str, Any] = copy.deepcopy(dict(left))
    for k, v in right.items():
        if isinstance(v, Mapping) and isinstance(out.get(k), Mapping):
            out[k] = merge_config(out[k], v)
        else:
            out[k] = copy.deepcopy(v)
    return out


@dataclass
class AppClass:
    """
    Descriptor of a realized application class.

    This is plain data registered in a ClassRegistry, not a Python type:
    bases are class names, and the registry owns linearization.
    """

    name: str
    version: str = "0"
    bases: List[str] = field(default_factory=list)
    home: Optional[str] = None
    config: Dict[str, Any] = field(default_factory=dict)
    plugins: List[str] = field(default_factory=list)
    flags: List[str] = field(default_factory=list)
    activated: bool = False
    is_setup: bool = False
    # Created by a builder and waiting for framework activation.
    pending: bool = False

    @property
    def debug(self) -> bool:
        return DEBUG_FLAG in self.flags

    def set_config(self, config: Mapping[str, Any]) -> Dict[str, Any]:
        if not isinstance(config, Mapping):
            raise ConfigurationError(
                code="config.invalid",
                message="config must be a mapping",
                data={"app_name": self.name},
            )
        self.config = merge_config(self.config, config)
        return self.config

    def strip_config(self, *keys: str) -> List[str]:
        removed = []
        for k in keys:
            if k in self.config:
                del self.config[k]
                removed.append(k)
        return removed

    def path_to(self, *fragments: str) -> str:
        home = self.config.get("home") or self.home
        if not home:
            raise ConfigurationError(
                code="app.no_home",
                message=f"No home directory known for {self.name}",
                data={"app_name": self.name},
            )
        return str(Path(home).joinpath(*fragments))

    def summary(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "bases": list(self.bases),
            "home": self.home,
            "config": self.config,
            "plugins": list(self.plugins),
            "flags": list(self.flags),
            "activated": self.activated,
            "is_setup": self.is_setup,
        }
