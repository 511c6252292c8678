import json
import unittest
from datetime import date

from projstat.errors import PayloadDecodeError
from projstat.gviz import cell_text, decode_gviz, gviz_table_to_dataset, parse_date_literal, parse_gviz_payload


def wrap(payload: dict) -> str:
    return "/*O_o*/\ngoogle.visualization.Query.setResponse(" + json.dumps(payload) + ");"


TABLE = {
    "cols": [
        {"id": "A", "label": "System", "type": "string"},
        {"id": "B", "label": "", "type": "number"},
        {"id": "", "label": "", "type": "string"},
    ],
    "rows": [
        {"c": [{"v": "Alpha"}, {"v": 3.0, "f": "3"}, None]},
        {"c": [{"v": "Beta"}, {"v": 2.5}]},
        {"c": [{"v": "Gamma"}, {"v": 1.0}, {"v": "x"}, {"v": "overflow"}]},
    ],
}


class PayloadParsingTests(unittest.TestCase):
    def test_wrapped_payload_is_unwrapped(self):
        table = parse_gviz_payload(wrap({"version": "0.6", "status": "ok", "table": TABLE}))

        self.assertEqual(len(table["cols"]), 3)

    def test_missing_braces_are_not_recognized(self):
        for text in ["", "no json here", "} backwards {"]:
            with self.subTest(text=text):
                with self.assertRaisesRegex(PayloadDecodeError, "GViz payload was not recognized"):
                    parse_gviz_payload(text)

    def test_javascript_literals_are_rejected_not_evaluated(self):
        text = "setResponse({table: {cols: [], rows: []}, x: (function(){return 1})()});"

        with self.assertRaisesRegex(PayloadDecodeError, "Could not parse GViz response"):
            parse_gviz_payload(text)

    def test_payload_without_table_is_rejected(self):
        with self.assertRaisesRegex(PayloadDecodeError, "no table data"):
            parse_gviz_payload(wrap({"status": "error", "errors": [{"reason": "access_denied"}]}))

    def test_table_must_be_an_object(self):
        with self.assertRaisesRegex(PayloadDecodeError, "no table data"):
            parse_gviz_payload(wrap({"table": None}))


class TableConversionTests(unittest.TestCase):
    def test_headers_fall_back_to_id_then_position(self):
        dataset = gviz_table_to_dataset(TABLE)

        self.assertEqual(dataset.headers, ("System", "B", "Column 3"))

    def test_rows_are_normalized_to_header_count(self):
        dataset = gviz_table_to_dataset(TABLE)

        self.assertEqual(
            dataset.rows,
            (
                ("Alpha", "3", ""),
                ("Beta", "2.5", ""),
                ("Gamma", "1", "x"),
            ),
        )

    def test_formula_text_wins_over_numeric_value(self):
        self.assertEqual(cell_text({"v": 42, "f": "=SUM(A1:A3)"}), "=SUM(A1:A3)")

    def test_blank_formatted_text_falls_back_to_value(self):
        self.assertEqual(cell_text({"v": 7, "f": "   "}), "7")

    def test_missing_and_null_cells_are_empty(self):
        self.assertEqual(cell_text(None), "")
        self.assertEqual(cell_text({"v": None}), "")
        self.assertEqual(cell_text({}), "")

    def test_booleans_render_lowercase(self):
        self.assertEqual(cell_text({"v": True}), "true")
        self.assertEqual(cell_text({"v": False}), "false")

    def test_date_literal_renders_as_locale_date(self):
        expected = date(2024, 1, 15).strftime("%x")

        self.assertEqual(parse_date_literal("Date(2024,0,15)"), date(2024, 1, 15))
        self.assertEqual(cell_text({"v": "Date(2024,0,15)"}), expected)
        self.assertEqual(cell_text({"v": "Date(2024,0,15,9,30,0)"}), expected)

    def test_invalid_date_literal_is_left_as_text(self):
        self.assertIsNone(parse_date_literal("Date(2024,13,40)"))
        self.assertEqual(cell_text({"v": "Date(2024,13,40)"}), "Date(2024,13,40)")

    def test_rows_without_cell_list_become_blank_rows(self):
        dataset = gviz_table_to_dataset({"cols": [{"label": "A"}], "rows": [{"c": None}, "junk"]})

        self.assertEqual(dataset.rows, (("",), ("",)))

    def test_table_without_columns_has_no_headers(self):
        dataset = decode_gviz(wrap({"table": {"cols": [], "rows": []}}))

        self.assertEqual(dataset.headers, ())
        self.assertEqual(dataset.rows, ())


if __name__ == "__main__":
    unittest.main()
