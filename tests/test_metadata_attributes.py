"""
Tests for attribute, measure and metric definitions.
"""

import unittest

from pydantic import ValidationError

from semcubes.metadata.attributes import (
    Aggregation,
    Attribute,
    DataType,
    Measure,
    Metric,
    validate_data_type,
)


class DataTypeTestCase(unittest.TestCase):
    def test_known_types(self):
        for name in ["i8", "i16", "i32", "i64", "f32", "f64", "bool", "string"]:
            self.assertEqual(name, validate_data_type(name))
        self.assertEqual("date", validate_data_type(DataType.DATE))
        self.assertEqual("timestamp", validate_data_type("TIMESTAMP"))

    def test_decimal(self):
        self.assertEqual("decimal(10, 2)", validate_data_type("decimal(10,2)"))
        self.assertEqual("decimal(38, 0)", validate_data_type("Decimal( 38 , 0 )"))

    def test_unknown_types_are_kept(self):
        self.assertEqual("varchar", validate_data_type("VarChar"))
        self.assertEqual("decimal(10)", validate_data_type("decimal(10)"))
        self.assertEqual("string", validate_data_type(" "))


class AttributeTestCase(unittest.TestCase):
    def test_defaults(self):
        attr = Attribute(name="country")
        self.assertEqual("string", attr.type)
        self.assertEqual("country", attr.column_name)
        self.assertFalse(attr.is_date)
        self.assertFalse(attr.is_timestamp)
        self.assertFalse(attr.is_numeric)

    def test_column_and_type(self):
        attr = Attribute.model_validate(
            {"name": "date", "column": "full_date", "type": "date"}
        )
        self.assertEqual("full_date", attr.column_name)
        self.assertTrue(attr.is_date)

        self.assertTrue(Attribute(name="ts", type="timestamp").is_timestamp)
        self.assertTrue(Attribute(name="n", type="i64").is_numeric)
        self.assertTrue(Attribute(name="d", type="decimal(12, 4)").is_numeric)

    def test_null_type_is_string(self):
        self.assertEqual("string", Attribute(name="x", type=None).type)

    def test_unknown_type(self):
        attr = Attribute(name="x", type="Geometry")
        self.assertEqual("geometry", attr.type)
        self.assertFalse(attr.is_numeric)
        self.assertFalse(attr.is_date)
        self.assertFalse(Attribute(name="d", type="decimal(10)").is_numeric)


class MeasureTestCase(unittest.TestCase):
    def test_measure(self):
        measure = Measure.model_validate(
            {
                "name": "revenue",
                "aggregation": "sum",
                "expr": "amount",
                "dataFilter": [{"field": "geography.country", "userAttribute": "country"}],
            }
        )
        self.assertEqual(Aggregation.SUM.value, measure.aggregation)
        self.assertEqual("amount", measure.expr)
        self.assertEqual("country", measure.data_filter[0].user_attribute)

    def test_structured_expression(self):
        measure = Measure(
            name="margin",
            aggregation="sum",
            expr={"subtract": ["amount", "cost"]},
        )
        self.assertEqual({"subtract": ["amount", "cost"]}, measure.expr)

    def test_invalid_aggregation(self):
        with self.assertRaises(ValidationError):
            Measure(name="x", aggregation="median", expr="x")


class MetricTestCase(unittest.TestCase):
    def test_result_type(self):
        self.assertEqual("f64", Metric(name="revenue", expr="revenue").result_type)
        self.assertEqual(
            "i64", Metric(name="orders", expr="orders", type="i64").result_type
        )
