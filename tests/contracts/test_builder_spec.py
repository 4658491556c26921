import tempfile
import unittest
from pathlib import Path

from appbuilder.builder_spec import builder_from_spec, load_builder_spec, validate_builder_spec
from appbuilder.contract_store import ContractStore
from appbuilder.core.builder import Builder
from appbuilder.core.errors import ConfigurationError
from appbuilder.core.framework import Framework
from appbuilder.registry.class_registry import ClassRegistry
from appbuilder.resources import contracts_dir


class TestBuilderSpec(unittest.TestCase):
    def test_shipped_schemas_are_valid(self) -> None:
        store = ContractStore(contracts_dir())
        store.load()
        self.assertIn("builder_spec.schema.json", store.list_schema_names())
        self.assertEqual(store.check_schemas(), [])

    def test_validation_errors(self) -> None:
        self.assertEqual(validate_builder_spec({"app_name": "MyApp", "plugins": ["Session"]}), [])
        self.assertNotEqual(validate_builder_spec({"plugins": []}), [])
        self.assertNotEqual(validate_builder_spec({"app_name": "MyApp", "colour": "red"}), [])
        self.assertNotEqual(validate_builder_spec({"app_name": "MyApp", "builder": "no-colon"}), [])

    def test_load_yaml_and_json(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            y = Path(td) / "app.yml"
            y.write_text("app_name: MyApp\ndebug: true\nsuperclasses: [Base]\n", encoding="utf-8")
            j = Path(td) / "app.json"
            j.write_text('{"app_name": "MyApp", "version": "1.2"}', encoding="utf-8")
            self.assertEqual(load_builder_spec(y)["superclasses"], ["Base"])
            self.assertEqual(load_builder_spec(j)["version"], "1.2")

    def test_invalid_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "app.yml"
            p.write_text("app_name: MyApp\nversion: 1.0\n", encoding="utf-8")
            with self.assertRaises(ConfigurationError) as ctx:
                load_builder_spec(p)
            self.assertEqual(ctx.exception.code, "spec.invalid")

            bad = Path(td) / "app.toml"
            bad.write_text("", encoding="utf-8")
            with self.assertRaises(ConfigurationError):
                load_builder_spec(bad)

    def test_builder_from_spec(self) -> None:
        registry = ClassRegistry()
        spec = {"app_name": "MyApp", "debug": True, "home": "site", "builder": "appbuilder.core.builder:Builder"}
        with tempfile.TemporaryDirectory() as td:
            b = builder_from_spec(spec, base_dir=Path(td), registry=registry, framework=Framework(registry))
            self.assertIsInstance(b, Builder)
            self.assertEqual(b.home, str((Path(td) / "site").resolve()))
            self.assertEqual(b.plugins, ["-Debug"])
            self.assertIs(b.registry, registry)

    def test_builder_must_be_a_builder_class(self) -> None:
        with self.assertRaises(ConfigurationError) as ctx:
            builder_from_spec({"app_name": "MyApp", "builder": "json:dumps"})
        self.assertEqual(ctx.exception.code, "builder.invalid")


if __name__ == "__main__":
    unittest.main()
