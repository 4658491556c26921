from __future__ import annotations

import inspect
import json
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from appbuilder.contract_store import ContractStore
from appbuilder.core.builder import Builder
from appbuilder.core.errors import ConfigurationError
from appbuilder.registry.loader import import_object
from appbuilder.resources import contracts_dir


SPEC_SCHEMA = "builder_spec.schema.json"

_FACET_KEYS = ("version", "superclasses", "config", "plugins", "home")

_CONTRACTS: Optional[ContractStore] = None


def _contracts() -> ContractStore:
    global _CONTRACTS
    if _CONTRACTS is None:
        store = ContractStore(contracts_dir())
        store.load()
        _CONTRACTS = store
    return _CONTRACTS


def _read_instance(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yml", ".yaml"):
        return yaml.safe_load(text)
    if path.suffix.lower() == ".json":
        return json.loads(text)
    raise ConfigurationError(code="spec.invalid", message=f"Unsupported spec extension: {path.name}", data={"path": str(path)})


def validate_builder_spec(spec: Any) -> list:
    return _contracts().validate(SPEC_SCHEMA, spec)


def load_builder_spec(path: Path) -> Dict[str, Any]:
    """
    Read and validate a builder spec file (YAML or JSON).

    Example:
      app_name: MyApp.Extended
      superclasses: [MyApp.Base]
      plugins: [Session]
      config:
        View:
          INCLUDE_PATH: []
    """
    try:
        spec = _read_instance(path)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(code="spec.invalid", message=f"Cannot parse builder spec: {path}", data={"path": str(path), "error": str(e)}) from e
    errors = validate_builder_spec(spec)
    if errors:
        raise ConfigurationError(
            code="spec.invalid",
            message=f"Builder spec validation failed: {path}",
            data={"path": str(path), "errors": errors},
        )
    return spec


def builder_from_spec(spec: Dict[str, Any], *, base_dir: Optional[Path] = None, **collaborators: Any) -> Builder:
    """
    Build a Builder (or the class named by spec["builder"]) from a validated spec.
    A relative home is resolved against base_dir.
    """
    cls: Any = Builder
    if spec.get("builder"):
        cls = import_object(spec["builder"])
        if not (inspect.isclass(cls) and issubclass(cls, Builder)):
            raise ConfigurationError(code="builder.invalid", message="builder must name a Builder subclass", data={"builder": spec["builder"]})

    values: Dict[str, Any] = {k: spec[k] for k in _FACET_KEYS if k in spec}
    if "home" in values and base_dir is not None:
        values["home"] = str((Path(base_dir) / values["home"]).resolve())
    elif "home" not in values and base_dir is not None and cls is Builder:
        values["home"] = str(Path(base_dir).resolve())

    return cls(spec["app_name"], debug=bool(spec.get("debug", False)), **values, **collaborators)
