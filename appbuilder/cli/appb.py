from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, Optional

from appbuilder.builder_spec import builder_from_spec, load_builder_spec
from appbuilder.contract_store import ContractStore
from appbuilder.core.bootstrap_context import BootstrapContext
from appbuilder.core.builder import Builder
from appbuilder.core.errors import AppBuilderError
from appbuilder.core.framework import Framework
from appbuilder.registry.class_registry import ClassRegistry
from appbuilder.registry.loader import DependencyLoader
from appbuilder.resources import contracts_dir
from appbuilder.trace.replay import Replay
from appbuilder.trace.trace_emitter import TraceEmitter
from appbuilder.trace.trace_store_jsonl import TraceStoreJSONL


def _format_cli_error(e: Exception) -> str:
    """
    Print-friendly error formatting for CLI commands.
    - Always includes code/message (via __str__) when it's an AppBuilderError
    - Includes structured `data` payload when present
    """
    if isinstance(e, AppBuilderError) and isinstance(e.data, dict) and e.data:
        return str(e) + "\n" + json.dumps(e.data, ensure_ascii=False, indent=2, default=str)
    return str(e)


def _build_from_args(args: argparse.Namespace) -> Builder:
    spec_path = Path(args.spec)
    spec = load_builder_spec(spec_path)

    # Each CLI run gets its own registry; nothing is shared with the process default.
    registry = ClassRegistry()
    spec_dirs = [spec_path.parent] + [Path(d) for d in (getattr(args, "spec_dir", None) or [])]
    loader = DependencyLoader(registry, spec_dirs=spec_dirs)

    trace: Optional[TraceEmitter] = None
    if getattr(args, "trace", None):
        trace = TraceEmitter(store=TraceStoreJSONL(Path(args.trace)), run_id=args.run_id)

    return builder_from_spec(
        spec,
        base_dir=spec_path.parent,
        registry=registry,
        loader=loader,
        framework=Framework(registry),
        trace=trace,
    )


def _dump(obj: Any) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2, default=str))


def cmd_check_contracts(_args: argparse.Namespace) -> int:
    store = ContractStore(contracts_dir())
    store.load()
    schema_errors = store.check_schemas()
    if schema_errors:
        print("Schema validation failed:")
        for name, err in schema_errors:
            print("- {}: {}".format(name, err))
        return 1
    print("Contracts OK")
    return 0


def cmd_check_spec(args: argparse.Namespace) -> int:
    spec = load_builder_spec(Path(args.spec))
    print("Spec OK: {}".format(spec["app_name"]))
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    builder = _build_from_args(args)
    _dump(builder.describe())
    return 0


def cmd_bootstrap(args: argparse.Namespace) -> int:
    builder = _build_from_args(args)
    ctx = BootstrapContext.from_env(entry_point=bool(args.setup))
    app = builder.bootstrap(ctx)
    out: Dict[str, Any] = app.summary()
    out["linearized"] = builder.registry.linearize(app.name)
    _dump(out)
    return 0


def cmd_paths(args: argparse.Namespace) -> int:
    builder = _build_from_args(args)
    builder.bootstrap()
    if args.app_only:
        paths = [builder.app_path_to(*args.fragments)]
    else:
        paths = builder.inherited_path_to(*args.fragments)
    if args.json:
        _dump(paths)
    else:
        for p in paths:
            print(p)
    return 0


def cmd_show_trace(args: argparse.Namespace) -> int:
    replay = Replay(Path(args.trace))
    events = list(replay.iter_events())

    if args.event_type:
        events = [e for e in events if e.get("event_type") == args.event_type]
    if args.app_name:
        events = [e for e in events if e.get("app_name") == args.app_name]

    if args.tail is not None and args.tail >= 0:
        events = events[-args.tail :]

    for e in events:
        print(json.dumps(e, ensure_ascii=False))
    return 0


def _add_build_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("spec", help="Builder spec file (.yml/.yaml/.json)")
    p.add_argument("--spec-dir", action="append", help="Extra directory searched for superclass spec files (repeatable)")
    p.add_argument("--trace", help="Trace output path (jsonl)")
    p.add_argument("--run-id", default="run_cli", help="Run ID for trace correlation")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="appb", description="Application builder CLI")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_check = sub.add_parser("check-contracts", help="Validate shipped JSON Schemas")
    p_check.set_defaults(func=cmd_check_contracts)

    p_spec = sub.add_parser("check-spec", help="Validate a builder spec file")
    p_spec.add_argument("spec", help="Builder spec file (.yml/.yaml/.json)")
    p_spec.set_defaults(func=cmd_check_spec)

    p_show = sub.add_parser("show", help="Print the resolved facets of a builder spec")
    _add_build_args(p_show)
    p_show.set_defaults(func=cmd_show)

    p_boot = sub.add_parser("bootstrap", help="Realize and bootstrap the application class")
    _add_build_args(p_boot)
    p_boot.add_argument("--setup", action="store_true", help="Act as the program entry point and run setup")
    p_boot.set_defaults(func=cmd_bootstrap)

    p_paths = sub.add_parser("paths", help="Resolve a path against every application class in the hierarchy")
    _add_build_args(p_paths)
    p_paths.add_argument("fragments", nargs="+", help="Path fragments, e.g. root templates")
    p_paths.add_argument("--app-only", action="store_true", help="Resolve against the application class only")
    p_paths.add_argument("--json", action="store_true", help="Output a JSON list")
    p_paths.set_defaults(func=cmd_paths)

    p_show_trace = sub.add_parser("show-trace", help="Show trace events from a JSONL file")
    p_show_trace.add_argument("--trace", required=True, help="Trace JSONL path")
    p_show_trace.add_argument("--event-type", help="Only events of this type")
    p_show_trace.add_argument("--app-name", help="Only events for this application class")
    p_show_trace.add_argument("--tail", type=int, help="Only the last N events")
    p_show_trace.set_defaults(func=cmd_show_trace)

    ns = parser.parse_args(argv)
    try:
        return int(ns.func(ns))
    except (AppBuilderError, FileNotFoundError) as e:
        print(_format_cli_error(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
