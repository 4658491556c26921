import tempfile
import unittest
from pathlib import Path

from appbuilder.core.bootstrap_context import BootstrapContext
from appbuilder.core.builder import Builder
from appbuilder.core.errors import FrameworkInitError
from appbuilder.core.framework import Framework
from appbuilder.registry.class_registry import ClassRegistry
from appbuilder.trace import events
from appbuilder.trace.replay import Replay
from appbuilder.trace.trace_emitter import TraceEmitter
from appbuilder.trace.trace_store_jsonl import TraceStoreJSONL


class TestBootstrap(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = ClassRegistry()
        self.framework = Framework(self.registry)

    def _make(self, name="MyApp", **kw):
        return Builder(name, registry=self.registry, framework=self.framework, **kw)

    def test_composed_caller_does_not_setup(self) -> None:
        app = self._make(plugins=["Session"]).bootstrap()
        self.assertEqual(app.config["name"], "MyApp")
        self.assertFalse(app.is_setup)
        self.assertEqual(app.plugins, [])

    def test_entry_point_runs_setup(self) -> None:
        b = self._make(debug=True, plugins=["-Debug", "Session", "+My.Plugin"])
        app = b.bootstrap(BootstrapContext(entry_point=True))
        self.assertTrue(app.is_setup)
        self.assertTrue(app.debug)
        self.assertEqual(app.flags, ["-Debug"])
        self.assertEqual(app.plugins, ["Session", "My.Plugin"])

    def test_outer_builder_can_configure_before_setup(self) -> None:
        b = self._make(config={"name": "MyApp", "a": 1})
        app = b.bootstrap()
        app.set_config({"b": {"deep": True}})
        self.assertFalse(app.is_setup)

        self.framework.setup(app, b.plugins)
        self.assertTrue(app.is_setup)
        self.assertEqual(app.config, {"name": "MyApp", "a": 1, "b": {"deep": True}})

    def test_setup_runs_once(self) -> None:
        b = self._make()
        b.bootstrap(BootstrapContext(entry_point=True))
        with self.assertRaises(FrameworkInitError) as ctx:
            b.bootstrap(BootstrapContext(entry_point=True))
        self.assertEqual(ctx.exception.code, "framework.already_setup")

    def test_failed_setup_leaves_plugins_unrecorded(self) -> None:
        seen = []

        def broken(app):
            seen.append(list(app.plugins))
            raise RuntimeError("plugin refused")

        self.framework.on_setup(broken)
        b = self._make(debug=True, plugins=["-Debug", "Session"])
        with self.assertRaises(FrameworkInitError) as ctx:
            b.bootstrap(BootstrapContext(entry_point=True))
        self.assertEqual(ctx.exception.code, "framework.setup_failed")
        self.assertEqual(seen, [["Session"]])

        app = b.app_meta
        self.assertFalse(app.is_setup)
        self.assertEqual(app.plugins, [])
        self.assertEqual(app.flags, [])
        self.assertFalse(app.debug)

    def test_context_from_env(self) -> None:
        self.assertTrue(BootstrapContext.from_env(environ={"HARNESS_ACTIVE": "1"}).should_setup)
        self.assertTrue(BootstrapContext.from_env(environ={"APPBUILDER_HARNESS_ACTIVE": "yes"}).harness_active)
        self.assertFalse(BootstrapContext.from_env(environ={"APPBUILDER_HARNESS_ACTIVE": "0"}).should_setup)
        self.assertFalse(BootstrapContext.from_env(environ={}).should_setup)
        self.assertTrue(BootstrapContext.from_env(entry_point=True, environ={}).should_setup)

    def test_trace_records_bootstrap(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            trace_path = Path(td) / "trace.jsonl"
            trace = TraceEmitter(store=TraceStoreJSONL(trace_path), run_id="run_test_1")
            self._make(trace=trace).bootstrap()

            event_types = Replay(trace_path).event_types("MyApp")
            for ev in ("facet_built", "class_created", "framework_activated", "config_applied", "setup_skipped"):
                self.assertIn(ev, event_types)
            self.assertNotIn("setup_run", event_types)
            self.assertLess(event_types.index("class_created"), event_types.index("config_applied"))

    def test_trace_records_rollback_of_failed_activation(self) -> None:
        def boom(app):
            raise RuntimeError("no framework")

        self.framework.on_activate(boom)
        with tempfile.TemporaryDirectory() as td:
            trace_path = Path(td) / "trace.jsonl"
            trace = TraceEmitter(store=TraceStoreJSONL(trace_path), run_id="run_test_2")
            with self.assertRaises(FrameworkInitError):
                self._make(trace=trace).bootstrap()

            event_types = Replay(trace_path).event_types("MyApp")
            self.assertEqual(event_types[-2:], [events.ERROR, events.CLASS_ROLLED_BACK])
            self.assertNotIn(events.FRAMEWORK_ACTIVATED, event_types)
            self.assertTrue(set(event_types) <= set(events.ALL_EVENT_TYPES))


if __name__ == "__main__":
    unittest.main()
