import unittest

from projstat.csv_parser import parse_csv, tokenize
from projstat.models import Dataset, normalize_row_length


class CsvParserTests(unittest.TestCase):
    def test_quotes_escapes_and_blank_lines(self):
        rows = parse_csv('a,"b,c","d""e"\nf,g,h\r\n\n')

        self.assertEqual(rows, [["a", "b,c", 'd"e'], ["f", "g", "h"]])

    def test_crlf_is_a_single_terminator(self):
        self.assertEqual(tokenize("a,b\r\nc,d"), [["a", "b"], ["c", "d"]])

    def test_lone_carriage_return_ends_a_row(self):
        self.assertEqual(parse_csv("a\rb\r"), [["a"], ["b"]])

    def test_last_row_flushed_without_trailing_newline(self):
        self.assertEqual(parse_csv("x,y\n1,2"), [["x", "y"], ["1", "2"]])

    def test_newlines_inside_quotes_are_field_content(self):
        rows = parse_csv('name,notes\nAlpha,"line one\n\nline three"\n')

        self.assertEqual(rows, [["name", "notes"], ["Alpha", "line one\n\nline three"]])

    def test_whitespace_only_rows_are_dropped(self):
        self.assertEqual(parse_csv("h1,h2\n  ,\t\nv1,v2\n"), [["h1", "h2"], ["v1", "v2"]])

    def test_empty_fields_are_kept(self):
        self.assertEqual(parse_csv("a,,c\n"), [["a", "", "c"]])

    def test_empty_text_yields_no_rows(self):
        self.assertEqual(parse_csv(""), [])
        self.assertEqual(parse_csv("\n\r\n"), [])

    def test_fields_are_not_trimmed(self):
        self.assertEqual(parse_csv(" a , b \n"), [[" a ", " b "]])


class RowNormalizationTests(unittest.TestCase):
    def test_rows_are_padded_or_truncated_to_header_count(self):
        self.assertEqual(normalize_row_length(["X"], 2), ("X", ""))
        self.assertEqual(normalize_row_length(["Y", "Z", "W"], 2), ("Y", "Z"))

    def test_dataset_build_normalizes_every_row(self):
        dataset = Dataset.build(["A", "B"], [["X"], ["Y", "Z", "W"]])

        self.assertEqual(dataset.headers, ("A", "B"))
        self.assertEqual(dataset.rows, (("X", ""), ("Y", "Z")))
        self.assertTrue(all(len(row) == len(dataset.headers) for row in dataset.rows))


if __name__ == "__main__":
    unittest.main()
