import copy
import unittest

from findatex_schema.catalog import (
    Consequence,
    FieldType,
    SchemaError,
    compile_catalog,
)


class CatalogCompileTests(unittest.TestCase):
    def setUp(self):
        self.definition = {
            "title": "Mini",
            "version": "1",
            "fields": {
                "id":       {"type": "string", "required": True},
                "amount":   {"type": "number", "minimum": 0, "maximum": 100},
                "status":   {"type": "string", "enum": ["Y", "N"], "required": True},
                "category": {"type": "integer", "enum": [1, 2, 3]},
                "issued":   {"type": "string", "format": "date"},
                "stamp":    {"type": "date-time"},
                "ccy":      {"type": "currency-code"},
                "detail":   {
                    "type": "string",
                    "rules": [{"if": {"field": "status", "equals": "Y"}, "then": "required"}],
                },
            },
        }

    def _broken(self, **changes):
        bad = copy.deepcopy(self.definition)
        for name, spec in changes.items():
            bad["fields"][name] = spec
        return bad

    # ------------------------------------------------------------------ #
    # Happy path                                                         #
    # ------------------------------------------------------------------ #
    def test_compiles_in_declaration_order(self):
        cat = compile_catalog(self.definition)
        self.assertEqual(cat.identifiers[:3], ("id", "amount", "status"))
        self.assertEqual(cat.required_fields, ("id", "status"))
        self.assertEqual(cat.title, "Mini")
        self.assertEqual(len(cat), 8)
        self.assertIn("ccy", cat)
        self.assertIsNone(cat.get("nope"))

    def test_compact_spellings_are_normalised(self):
        cat = compile_catalog(self.definition)
        self.assertIs(cat["status"].type, FieldType.STRING_ENUM)
        self.assertIs(cat["category"].type, FieldType.INTEGER_ENUM)
        self.assertIs(cat["issued"].type, FieldType.DATE)
        self.assertIs(cat["stamp"].type, FieldType.DATE_TIME)
        self.assertIs(cat["ccy"].type, FieldType.CURRENCY)
        self.assertEqual(cat["status"].enum, ("Y", "N"))

    def test_rules_are_collected_in_order(self):
        cat = compile_catalog(self.definition)
        self.assertEqual(len(cat.rules), 1)
        rule = cat.rules[0]
        self.assertEqual(rule.target, "detail")
        self.assertEqual(rule.condition.field, "status")
        self.assertIs(rule.consequence, Consequence.REQUIRED)

    def test_field_list_form(self):
        cat = compile_catalog({"fields": [{"id": "a", "type": "integer"}, {"id": "b"}]})
        self.assertEqual(cat.identifiers, ("a", "b"))
        self.assertIs(cat["b"].type, FieldType.STRING)

    def test_exclusive_group_expands_to_forbidden_rules(self):
        definition = {
            "fields": {"a": {"type": "number"}, "b": {"type": "number"}, "c": {"type": "number"}},
            "exclusive": [["a", "b", "c"]],
        }
        cat = compile_catalog(definition)
        pairs = [(r.condition.field, r.target) for r in cat.rules]
        self.assertEqual(pairs, [("a", "b"), ("a", "c"), ("b", "c")])
        self.assertTrue(all(r.consequence is Consequence.FORBIDDEN for r in cat.rules))

    def test_catalog_is_read_only(self):
        cat = compile_catalog(self.definition)
        with self.assertRaises(TypeError):
            cat.fields["new"] = cat["id"]
        with self.assertRaises(AttributeError):
            cat.title = "changed"

    # ------------------------------------------------------------------ #
    # Structural failures                                                #
    # ------------------------------------------------------------------ #
    def test_duplicate_identifier_fails(self):
        with self.assertRaisesRegex(SchemaError, "duplicate field identifier"):
            compile_catalog({"fields": [{"id": "a"}, {"id": "a"}]})

    def test_unknown_rule_reference_fails(self):
        bad = self._broken(detail={
            "type": "string",
            "rules": [{"if": {"field": "ghost", "equals": "Y"}, "then": "required"}],
        })
        with self.assertRaisesRegex(SchemaError, r"fields\.detail\.rules\[0\]: unknown trigger field 'ghost'"):
            compile_catalog(bad)

    def test_empty_enum_fails(self):
        with self.assertRaisesRegex(SchemaError, "non-empty"):
            compile_catalog(self._broken(status={"type": "string", "enum": []}))

    def test_min_greater_than_max_fails(self):
        with self.assertRaisesRegex(SchemaError, "greater than maximum"):
            compile_catalog(self._broken(amount={"type": "number", "minimum": 5, "maximum": 1}))

    def test_other_malformed_descriptors_fail(self):
        cases = {
            "unknown type":      {"type": "decimal"},
            "unknown key":       {"type": "string", "nullable": True},
            "enum kind":         {"type": "integer-enum", "enum": ["1"]},
            "bool enum":         {"type": "integer-enum", "enum": [True, 2]},
            "bounds on string":  {"type": "string", "minimum": 1},
            "bad pattern":       {"type": "string", "pattern": "(["},
            "pattern on number": {"type": "number", "pattern": "x"},
            "bad format":        {"type": "string", "format": "email"},
            "required not bool": {"type": "string", "required": "yes"},
            "negative length":   {"type": "string", "maxLength": -1},
            "enum on number":    {"type": "number", "enum": [1]},
        }
        for label, spec in cases.items():
            with self.subTest(label), self.assertRaises(SchemaError):
                compile_catalog(self._broken(amount=spec))

    def test_malformed_rules_fail(self):
        cases = {
            "self trigger": {"if": {"field": "detail", "equals": "Y"}, "then": "required"},
            "no operator":  {"if": {"field": "status"}, "then": "required"},
            "two ops":      {"if": {"field": "status", "equals": "Y", "present": True}, "then": "required"},
            "bad then":     {"if": {"field": "status", "equals": "Y"}, "then": "optional"},
            "empty in":     {"if": {"field": "status", "in": []}, "then": "required"},
            "present false": {"if": {"field": "status", "present": False}, "then": "required"},
            "extra key":    {"if": {"field": "status", "equals": "Y"}, "then": "required", "else": "x"},
        }
        for label, rule in cases.items():
            with self.subTest(label), self.assertRaises(SchemaError):
                compile_catalog(self._broken(detail={"type": "string", "rules": [rule]}))

    def test_must_equal_outside_enum_fails(self):
        bad = self._broken(category={
            "type": "integer-enum",
            "enum": [1, 2, 3],
            "rules": [{"if": {"field": "status", "equals": "N"}, "then": {"equals": 9}}],
        })
        with self.assertRaisesRegex(SchemaError, "not in the enumeration"):
            compile_catalog(bad)

    def test_exclusive_group_errors(self):
        for groups in ([["id"]], [["id", "ghost"]], [["id", "id"]], "id"):
            with self.subTest(groups=groups), self.assertRaises(SchemaError):
                compile_catalog({**self.definition, "exclusive": groups})

    def test_missing_fields_key_fails(self):
        with self.assertRaisesRegex(SchemaError, "missing required key 'fields'"):
            compile_catalog({"title": "x"})

    def test_schema_error_is_value_error(self):
        self.assertTrue(issubclass(SchemaError, ValueError))
