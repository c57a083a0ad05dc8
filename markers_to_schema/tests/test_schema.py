import unittest
from unittest import TestCase

from markers_to_schema.config import GeneratorConfig
from markers_to_schema.crd import SchemaState, TypeIdent, new_parser, type_ref_link
from markers_to_schema.crd.schema import DANGEROUS_FLOAT_MESSAGE
from markers_to_schema.errors import LoadError, SchemaError, UnknownTypeError
from markers_to_schema.loader import PackageLoader

from .source_tree import TEST_DATA_SRC, SourceTreeBuilder

SCHEDULE_PATTERN = r"^(\d+|\*)(/\d+)?(\s+(\d+|\*)(/\d+)?){4}$"


class TestExampleSchemata(TestCase):
    """Schemata generated from the example API packages in test_data"""

    def setUp(self):
        self.loader = PackageLoader([TEST_DATA_SRC])
        self.v1 = self.loader.load("example.api.v1")
        self.common = self.loader.load("example.common")
        self.parser = new_parser()

    def schema_for(self, pkg, name):
        ident = TypeIdent(pkg, name)
        self.parser.need_schema_for(ident)
        return self.parser.schemata.get(ident)

    def test_struct_fields(self):
        schema = self.schema_for(self.v1, "CronJobSpec")
        props = schema["properties"]

        self.assertEqual(schema["type"], "object")
        self.assertEqual(schema["description"], "CronJobSpec defines the desired state of CronJob.")
        self.assertEqual(
            props["schedule"],
            {"$ref": type_ref_link("example.api.v1", "Schedule"), "description": "The schedule in Cron format."},
        )
        self.assertEqual(props["startingDeadlineSeconds"], {"type": "integer", "minimum": 0})
        self.assertEqual(props["suspend"], {"type": "boolean"})
        self.assertEqual(props["args"], {"type": "array", "items": {"type": "string"}, "maxItems": 10})
        self.assertEqual(props["labels"], {"type": "object", "additionalProperties": {"type": "string"}})
        self.assertEqual(
            props["concurrencyPolicy"],
            {
                "$ref": type_ref_link("example.api.v1", "ConcurrencyPolicy"),
                "description": "Specifies how to treat concurrent executions of a Job.",
            },
        )

    def test_untagged_fields_are_skipped(self):
        schema = self.schema_for(self.v1, "CronJobSpec")
        self.assertNotIn("last_seen", schema["properties"])
        self.assertNotIn("lastSeen", schema["properties"])

    def test_required_fields(self):
        self.assertEqual(self.schema_for(self.v1, "CronJobSpec")["required"], ["schedule"])
        self.assertNotIn("required", self.schema_for(self.v1, "CronJobStatus"))

    def test_alias_with_type_marker(self):
        self.assertEqual(self.schema_for(self.v1, "Schedule"), {"type": "string", "pattern": SCHEDULE_PATTERN})

    def test_enum(self):
        self.assertEqual(
            self.schema_for(self.v1, "ConcurrencyPolicy"),
            {
                "type": "string",
                "enum": ["Allow", "Forbid", "Replace"],
                "description": "ConcurrencyPolicy describes how the job will be handled.",
            },
        )

    def test_referenced_types_are_generated(self):
        self.schema_for(self.v1, "CronJobSpec")
        for name in ("Schedule", "ConcurrencyPolicy"):
            self.assertEqual(self.parser.schema_state(TypeIdent(self.v1, name)), SchemaState.RESOLVED)
        self.assertEqual(self.parser.schema_state(TypeIdent(self.v1, "CronJob")), SchemaState.ABSENT)

    def test_cross_package_reference(self):
        schema = self.schema_for(self.v1, "CronJob")

        self.assertEqual(schema["allOf"], [{"$ref": type_ref_link("example.common", "TypeMeta")}])
        self.assertEqual(schema["properties"]["metadata"], {"$ref": type_ref_link("example.common", "ObjectMeta")})
        self.assertEqual(self.parser.schema_state(TypeIdent(self.common, "ObjectMeta")), SchemaState.RESOLVED)
        self.assertTrue(self.parser.is_loaded(self.common))

    def test_known_types(self):
        status = self.schema_for(self.v1, "CronJobStatus")
        self.assertEqual(
            status["properties"]["lastScheduleTime"]["$ref"], type_ref_link("datetime", "datetime")
        )

        datetime_pkg = self.loader.load("datetime")
        self.assertEqual(
            self.parser.schemata.get(TypeIdent(datetime_pkg, "datetime")), {"type": "string", "format": "date-time"}
        )
        self.assertEqual(datetime_pkg.errors, [])

        meta = self.schema_for(self.common, "ObjectMeta")
        self.assertEqual(meta["properties"]["creationTimestamp"], {"$ref": type_ref_link("datetime", "datetime")})

    def test_without_known_types(self):
        self.parser = new_parser(GeneratorConfig(use_known_types=False))
        self.schema_for(self.v1, "CronJobStatus")

        datetime_pkg = self.loader.load("datetime")
        self.assertTrue(any(isinstance(err, LoadError) for err in datetime_pkg.errors))
        self.assertTrue(any(isinstance(err, UnknownTypeError) for err in datetime_pkg.errors))

    def test_example_packages_have_no_errors(self):
        self.schema_for(self.v1, "CronJob")
        self.schema_for(self.v1, "CronJobList")
        self.assertEqual(self.v1.errors, [])
        self.assertEqual(self.common.errors, [])


class TestTranslation(TestCase):
    def setUp(self):
        self.tree = SourceTreeBuilder()
        self.addCleanup(self.tree.cleanup)
        self.tree.write(
            {
                "app/shapes/types.py": """
                    from dataclasses import dataclass, field
                    from enum import IntEnum
                    from typing import Any, NewType, Optional


                    class Priority(IntEnum):
                        LOW = 1
                        HIGH = 2


                    Name = NewType("Name", str)


                    @dataclass
                    class Ratio:
                        value: float = field(metadata={"json": "value"})


                    @dataclass
                    class Counts:
                        by_id: dict[int, str] = field(metadata={"json": "byId"})
                        by_name: dict[Name, int] = field(metadata={"json": "byName"})


                    @dataclass
                    class Mixed:
                        # +kubebuilder:validation:MinLength=1
                        size: int = field(metadata={"json": "size"})

                        # +kubebuilder:validation:Required
                        note: Optional[str] = field(default=None, metadata={"json": "note,omitempty"})

                        # +optional
                        extra: Any = field(default=None, metadata={"json": "extra"})

                        payload: bytes = field(default=b"", metadata={"json": "payload"})

                        priority: Priority = field(default=Priority.LOW, metadata={"json": "priority"})

                        # +kubebuilder:validation:Enum={a,b}
                        # +nullable
                        mode: str = field(default="a", metadata={"json": "mode"})

                        # +kubebuilder:validation:UniqueItems=true
                        # +kubebuilder:validation:MinItems=1
                        tags: list[str] = field(default_factory=list, metadata={"json": "tags"})

                        name_only: str = field(default="", metadata={"json": ",omitempty"})
                    """,
            }
        )
        self.pkg = self.tree.loader().load("app.shapes")

    def schema_for(self, name, **config):
        parser = new_parser(GeneratorConfig.from_dict(config))
        ident = TypeIdent(self.pkg, name)
        parser.need_schema_for(ident)
        return parser.schemata.get(ident)

    def test_float_is_rejected_by_default(self):
        schema = self.schema_for("Ratio")
        self.assertEqual(schema["properties"]["value"], {})
        self.assertEqual(len(self.pkg.errors), 1)
        self.assertIsInstance(self.pkg.errors[0].error, SchemaError)
        self.assertIn(DANGEROUS_FLOAT_MESSAGE, str(self.pkg.errors[0]))

    def test_float_is_allowed_when_configured(self):
        schema = self.schema_for("Ratio", allow_dangerous_types=True)
        self.assertEqual(schema["properties"]["value"], {"type": "number"})
        self.assertEqual(self.pkg.errors, [])

    def test_map_keys(self):
        schema = self.schema_for("Counts")
        self.assertEqual(schema["properties"]["byId"], {})
        self.assertEqual(
            schema["properties"]["byName"], {"type": "object", "additionalProperties": {"type": "integer"}}
        )
        self.assertEqual(len(self.pkg.errors), 1)
        self.assertIn("map keys must be strings", str(self.pkg.errors[0]))

    def test_field_shapes(self):
        props = self.schema_for("Mixed")["properties"]
        self.assertEqual(props["extra"], {"x-kubernetes-preserve-unknown-fields": True})
        self.assertEqual(props["payload"], {"type": "string", "format": "byte"})
        self.assertEqual(props["priority"], {"$ref": type_ref_link("app.shapes", "Priority")})
        self.assertEqual(props["mode"], {"type": "string", "enum": ["a", "b"], "nullable": True})
        self.assertEqual(props["tags"], {"type": "array", "items": {"type": "string"}, "uniqueItems": True, "minItems": 1})
        self.assertEqual(props["name_only"], {"type": "string"})

    def test_required_markers(self):
        schema = self.schema_for("Mixed")
        self.assertEqual(schema["required"], ["size", "note", "payload", "priority", "mode", "tags"])

    def test_marker_on_wrong_type(self):
        schema = self.schema_for("Mixed")
        self.assertEqual(schema["properties"]["size"], {"type": "integer"})
        self.assertEqual(len(self.pkg.errors), 1)
        self.assertIn("must apply minLength to a string value, found integer", str(self.pkg.errors[0]))

    def test_integer_enum(self):
        self.assertEqual(self.schema_for("Priority"), {"type": "integer", "enum": [1, 2]})


if __name__ == "__main__":
    unittest.main()
