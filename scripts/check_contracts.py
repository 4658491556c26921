from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from appbuilder.builder_spec import load_builder_spec  # noqa: E402
from appbuilder.contract_store import ContractStore  # noqa: E402
from appbuilder.core.errors import ConfigurationError  # noqa: E402
from appbuilder.resources import contracts_dir  # noqa: E402


def main() -> int:
    store = ContractStore(contracts_dir())
    store.load()

    schema_errors = store.check_schemas()
    if schema_errors:
        print("Schema validation failed:")
        for name, err in schema_errors:
            print("- {}: {}".format(name, err))
        return 1

    # Validate shipped example builder specs
    failures = []
    for p in sorted((ROOT / "examples" / "specs").glob("*.yml")):
        try:
            load_builder_spec(p)
        except ConfigurationError as e:
            failures.append((p.name, (e.data or {}).get("errors") or [str(e)]))

    if failures:
        for name, errs in failures:
            print("Example {} failed validation:".format(name))
            for e in errs:
                print("  - {}".format(e))
        return 1

    print("Contracts OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
