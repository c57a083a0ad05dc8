import unittest
from unittest import TestCase

from markers_to_schema.crd import TypeIdent, new_parser, type_ref_link
from markers_to_schema.crd.flatten import merge_schema
from markers_to_schema.errors import RecursiveTypeError
from markers_to_schema.loader import PackageLoader

from .source_tree import TEST_DATA_SRC, SourceTreeBuilder


class TestFlattenExample(TestCase):
    def setUp(self):
        self.loader = PackageLoader([TEST_DATA_SRC])
        self.v1 = self.loader.load("example.api.v1")
        self.parser = new_parser()

    def flattened(self, name):
        ident = TypeIdent(self.v1, name)
        self.parser.need_flattened_schema_for(ident)
        return self.parser.flattened_schemata[ident]

    def test_references_are_inlined(self):
        spec = self.flattened("CronJobSpec")
        self.assertEqual(
            spec["properties"]["schedule"],
            {"type": "string", "pattern": r"^(\d+|\*)(/\d+)?(\s+(\d+|\*)(/\d+)?){4}$", "description": "The schedule in Cron format."},
        )
        self.assertEqual(spec["properties"]["concurrencyPolicy"]["enum"], ["Allow", "Forbid", "Replace"])
        # the sibling description wins over the one of the referenced type
        self.assertEqual(
            spec["properties"]["concurrencyPolicy"]["description"],
            "Specifies how to treat concurrent executions of a Job.",
        )

    def test_embedded_types_are_merged(self):
        job = self.flattened("CronJob")

        self.assertNotIn("allOf", job)
        self.assertEqual(list(job["properties"]), ["metadata", "spec", "status", "kind", "apiVersion"])
        self.assertEqual(job["description"], "CronJob is the Schema for the cronjobs API.")
        self.assertEqual(
            job["properties"]["status"]["properties"]["lastScheduleTime"],
            {
                "type": "string",
                "format": "date-time",
                "description": "Information when was the last time the job was successfully scheduled.",
            },
        )

    def test_cached_schema_keeps_references(self):
        self.flattened("CronJob")
        schema = self.parser.schemata.get(TypeIdent(self.v1, "CronJob"))
        self.assertIn("allOf", schema)
        self.assertIn("$ref", schema["properties"]["metadata"])

    def test_no_errors(self):
        self.flattened("CronJob")
        self.assertEqual(self.v1.errors, [])


class TestFlattenRecursive(TestCase):
    def setUp(self):
        self.tree = SourceTreeBuilder()
        self.addCleanup(self.tree.cleanup)
        self.tree.write(
            {
                "app/nodes/types.py": """
                    from __future__ import annotations

                    from dataclasses import dataclass, field


                    @dataclass
                    class Node:
                        children: list[Node] = field(default_factory=list, metadata={"json": "children"})
                    """,
            }
        )
        self.pkg = self.tree.loader().load("app.nodes")

    def test_recursive_reference_is_kept(self):
        parser = new_parser()
        ident = TypeIdent(self.pkg, "Node")
        parser.need_flattened_schema_for(ident)

        flattened = parser.flattened_schemata[ident]
        self.assertEqual(flattened["properties"]["children"]["items"], {"$ref": type_ref_link("app.nodes", "Node")})
        self.assertEqual(len(self.pkg.errors), 1)
        self.assertIsInstance(self.pkg.errors[0], RecursiveTypeError)


def refs(node):
    """Return every $ref value inside a schema."""
    if isinstance(node, list):
        return [ref for item in node for ref in refs(item)]
    if not isinstance(node, dict):
        return []
    found = [node["$ref"]] if "$ref" in node else []
    return found + [ref for value in node.values() for ref in refs(value)]


class TestFlattenOrder(TestCase):
    FILES = {
        "app/nodes/types.py": """
            from __future__ import annotations

            from dataclasses import dataclass, field


            @dataclass
            class Ping:
                pong: Pong | None = field(default=None, metadata={"json": "pong,omitempty"})


            @dataclass
            class Pong:
                ping: Ping | None = field(default=None, metadata={"json": "ping,omitempty"})
            """,
    }

    def setUp(self):
        self.tree = SourceTreeBuilder()
        self.addCleanup(self.tree.cleanup)
        self.tree.write(self.FILES)

    def flatten(self, *names):
        pkg = self.tree.loader().load("app.nodes")
        parser = new_parser()
        for name in names:
            parser.need_flattened_schema_for(TypeIdent(pkg, name))
        return parser, pkg

    def test_inner_type_is_not_cached_while_flattening_outer(self):
        parser, pkg = self.flatten("Ping")
        self.assertIn(TypeIdent(pkg, "Ping"), parser.flattened_schemata)
        self.assertNotIn(TypeIdent(pkg, "Pong"), parser.flattened_schemata)

    def test_result_does_not_depend_on_request_order(self):
        parser, pkg = self.flatten("Ping", "Pong")
        fresh, fresh_pkg = self.flatten("Pong")

        pong = parser.flattened_schemata[TypeIdent(pkg, "Pong")]
        self.assertEqual(pong, fresh.flattened_schemata[TypeIdent(fresh_pkg, "Pong")])
        # only the reference back to Pong itself is kept
        self.assertEqual(refs(pong), [type_ref_link("app.nodes", "Pong")])
        self.assertEqual(refs(parser.flattened_schemata[TypeIdent(pkg, "Ping")]), [type_ref_link("app.nodes", "Ping")])


class TestMergeSchema(TestCase):
    def test_parent_keys_win(self):
        dst = {"type": "object", "properties": {"a": {"type": "string"}}, "required": ["a"], "description": "parent"}
        src = {
            "type": "object",
            "properties": {"a": {"type": "integer"}, "b": {"type": "boolean"}},
            "required": ["a", "b"],
            "description": "embedded",
            "x-kubernetes-preserve-unknown-fields": True,
        }
        merge_schema(dst, src)

        self.assertEqual(dst["properties"], {"a": {"type": "string"}, "b": {"type": "boolean"}})
        self.assertEqual(dst["required"], ["a", "b"])
        self.assertEqual(dst["description"], "parent")
        self.assertTrue(dst["x-kubernetes-preserve-unknown-fields"])


if __name__ == "__main__":
    unittest.main()
