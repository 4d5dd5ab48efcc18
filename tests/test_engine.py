import unittest

import pandas as pd

from findatex_schema import ErrorKind, compile_catalog, validate
from findatex_schema.engine import validate_record

from tests._util import EPT, EPT_MINIMAL, ept_record


SCENARIO = compile_catalog({
    "title": "Scenario",
    "fields": {
        "id":     {"type": "string", "required": True},
        "amount": {"type": "number", "required": True},
        "status": {"type": "string-enum", "enum": ["Y", "N"], "required": True},
        "note":   {
            "type": "string",
            "rules": [{"if": {"field": "status", "equals": "Y"}, "then": "required"}],
        },
    },
})


class EngineTests(unittest.TestCase):
    # --- happy path -----------------------------------------------------
    def test_complete_record_is_valid(self):
        result = validate(EPT.catalog, EPT_MINIMAL)
        self.assertTrue(result.valid, result.to_json())
        self.assertEqual(result.errors, [])
        self.assertTrue(result)

    def test_scenario_two_errors(self):
        result = validate(SCENARIO, {"id": "T1", "amount": "abc", "status": "X"})
        self.assertFalse(result.valid)
        self.assertEqual(
            [(e.field, e.kind) for e in result.errors],
            [("amount", ErrorKind.TYPE_MISMATCH), ("status", ErrorKind.ENUM_MISMATCH)],
        )

    # --- accumulation ---------------------------------------------------
    def test_each_missing_required_field_reported_once(self):
        for name in EPT.catalog.required_fields:
            with self.subTest(name):
                record = ept_record(**{name: None})
                result = validate(EPT.catalog, record)
                missing = [e for e in result.errors if e.kind is ErrorKind.MISSING_REQUIRED_FIELD]
                self.assertEqual([e.field for e in missing], [name])

    def test_missing_does_not_mask_other_errors(self):
        record = ept_record(**{
            "00050_Portfolio_Name": None,
            "00060_Portfolio_Or_Share_Class_Currency": "ZZZ",
            "01090_SRI": 9,
        })
        kinds = validate(EPT.catalog, record).kinds()
        self.assertEqual(
            kinds,
            [ErrorKind.MISSING_REQUIRED_FIELD, ErrorKind.ENUM_MISMATCH, ErrorKind.ENUM_MISMATCH],
        )

    def test_none_counts_as_absent(self):
        result = validate(SCENARIO, {"id": None, "amount": 1, "status": "N"})
        self.assertEqual(result.kinds(), [ErrorKind.MISSING_REQUIRED_FIELD])

    def test_type_errors_do_not_suppress_conditions(self):
        result = validate(SCENARIO, {"id": 5, "amount": 1, "status": "Y"})
        self.assertEqual(
            result.kinds(),
            [ErrorKind.TYPE_MISMATCH, ErrorKind.CONDITIONAL_REQUIREMENT_VIOLATION],
        )

    def test_conditional_rule_on_trigger_value(self):
        fired = validate(SCENARIO, {"id": "T1", "amount": 1, "status": "Y"})
        self.assertEqual(fired.kinds(), [ErrorKind.CONDITIONAL_REQUIREMENT_VIOLATION])
        quiet = validate(SCENARIO, {"id": "T1", "amount": 1, "status": "N"})
        self.assertTrue(quiet.valid)

    # --- unknown fields -------------------------------------------------
    def test_unknown_fields_ignored_by_default(self):
        record = {"id": "T1", "amount": 1, "status": "N", "x_producer_meta": "v1"}
        self.assertTrue(validate(SCENARIO, record).valid)

    def test_unknown_fields_reported_in_strict_mode(self):
        record = {"id": "T1", "amount": 1, "status": "N", "x_producer_meta": "v1"}
        (err,) = validate(SCENARIO, record, strict=True).errors
        self.assertIs(err.kind, ErrorKind.UNKNOWN_FIELD)
        self.assertEqual(err.field, "x_producer_meta")

    # --- determinism & batches -----------------------------------------
    def test_idempotent(self):
        record = ept_record(**{"00001_EPT_Version": "V99", "01125_Has_A_Contractual_Maturity_Date": "Y"})
        first = validate(EPT.catalog, record)
        second = validate(EPT.catalog, record)
        self.assertEqual(first.to_dict(), second.to_dict())
        self.assertFalse(first.valid)

    def test_single_and_one_element_batch_match(self):
        record = {"id": "T1", "amount": "abc", "status": "X"}
        single = validate(SCENARIO, record)
        batch = validate(SCENARIO, [record])
        self.assertTrue(batch.batch)
        self.assertEqual([e.index for e in batch.errors], [0, 0])
        self.assertEqual(
            [e.with_index(None) for e in batch.errors],
            single.errors,
        )

    def test_batch_records_are_independent(self):
        good = {"id": "T1", "amount": 1, "status": "N"}
        bad = {"id": "T2", "amount": "abc", "status": "N"}
        result = validate(SCENARIO, [good, bad, good])
        self.assertEqual(result.records, 3)
        self.assertEqual([e.index for e in result.errors], [1])
        self.assertEqual(result.for_record(0), [])
        self.assertEqual(len(result.for_record(1)), 1)

    def test_threaded_batch_preserves_order(self):
        records = [{"id": f"T{i}", "amount": "abc" if i % 2 else i, "status": "N"} for i in range(20)]
        serial = validate(SCENARIO, records)
        threaded = validate(SCENARIO, records, workers=4)
        self.assertEqual(serial.to_dict(), threaded.to_dict())

    def test_dataframe_subject(self):
        frame = pd.DataFrame([
            {"id": "T1", "amount": 1.5, "status": "N"},
            {"id": "T2", "amount": None, "status": "Q"},
        ])
        result = validate(SCENARIO, frame)
        self.assertEqual(
            [(e.index, e.field, e.kind) for e in result.errors],
            [(1, "amount", ErrorKind.MISSING_REQUIRED_FIELD), (1, "status", ErrorKind.ENUM_MISMATCH)],
        )

    def test_non_mapping_record_is_an_error_not_an_exception(self):
        result = validate(SCENARIO, [{"id": "T1", "amount": 1, "status": "N"}, "oops"])
        (err,) = result.errors
        self.assertIsNone(err.field)
        self.assertEqual(err.index, 1)
        self.assertIs(err.kind, ErrorKind.TYPE_MISMATCH)
        self.assertEqual(validate_record(SCENARIO, 42)[0].kind, ErrorKind.TYPE_MISMATCH)

    def test_empty_batch_is_valid(self):
        result = validate(SCENARIO, [])
        self.assertTrue(result.valid)
        self.assertEqual(result.records, 0)
