import unittest

from projstat.filters import apply_filters, cell_value, unique_values
from projstat.models import ColumnRoleIndex, FilterCriteria


ROLES = ColumnRoleIndex(system=0, milestone=1, developer=2, manager=3)
ROWS = (
    ("Alpha", "Design", "Jane Doe", "Sam Lee"),
    ("Alpha", "Build", "Raj Patel", "Sam Lee"),
    ("Beta", "Design", "Janet King", "Ann Cho"),
    ("Gamma", "Launch", "Omar Ali", "Benjamin Jones"),
    ("", "Backlog", "Jane Roe", ""),
)


class CellValueTests(unittest.TestCase):
    def test_unresolved_and_out_of_range_indexes_are_empty(self):
        row = ("a", " b ")

        self.assertEqual(cell_value(row, -1), "")
        self.assertEqual(cell_value(row, 5), "")
        self.assertEqual(cell_value(row, 1), "b")


class ApplyFiltersTests(unittest.TestCase):
    def test_no_criteria_keeps_every_row_in_order(self):
        result = apply_filters(ROWS, ROLES, FilterCriteria())

        self.assertEqual(result.rows, ROWS)
        self.assertEqual(result.total_milestones, 5)
        self.assertEqual(result.total_systems, 3)

    def test_system_equality_and_search_combine(self):
        result = apply_filters(ROWS, ROLES, FilterCriteria(system_equals="Alpha", search="jane"))

        self.assertEqual(result.rows, (ROWS[0],))
        self.assertEqual(result.total_systems, 1)
        self.assertEqual(result.total_milestones, 1)

    def test_search_is_case_insensitive_substring_over_role_columns(self):
        result = apply_filters(ROWS, ROLES, FilterCriteria(search="  JANE "))

        self.assertEqual(result.rows, (ROWS[0], ROWS[2], ROWS[4]))
        self.assertEqual(result.total_systems, 2)

    def test_search_matches_manager_column(self):
        result = apply_filters(ROWS, ROLES, FilterCriteria(search="benjamin"))

        self.assertEqual(result.rows, (ROWS[3],))

    def test_search_ignores_columns_without_a_role(self):
        rows = (("Alpha", "Design", "secret"),)
        roles = ColumnRoleIndex(system=0, milestone=1)

        self.assertEqual(apply_filters(rows, roles, FilterCriteria(search="secret")).rows, ())

    def test_system_match_is_exact(self):
        result = apply_filters(ROWS, ROLES, FilterCriteria(system_equals="alpha"))

        self.assertEqual(result.rows, ())
        self.assertEqual(result.total_systems, 0)
        self.assertEqual(result.total_milestones, 0)

    def test_milestone_filter(self):
        result = apply_filters(ROWS, ROLES, FilterCriteria(milestone_equals="Design"))

        self.assertEqual(result.rows, (ROWS[0], ROWS[2]))
        self.assertEqual(result.total_systems, 2)

    def test_unresolved_milestone_never_matches_a_milestone_filter(self):
        roles = ColumnRoleIndex(system=0)

        self.assertEqual(apply_filters(ROWS, roles, FilterCriteria(milestone_equals="Design")).rows, ())


class UniqueValuesTests(unittest.TestCase):
    def test_sorted_distinct_non_empty(self):
        self.assertEqual(unique_values(ROWS, 0), ["Alpha", "Beta", "Gamma"])
        self.assertEqual(unique_values(ROWS, 1), ["Backlog", "Build", "Design", "Launch"])

    def test_unresolved_column_has_no_values(self):
        self.assertEqual(unique_values(ROWS, -1), [])


if __name__ == "__main__":
    unittest.main()
