"""
Unit tests for reading import sheets and writing .xlsx files.
"""

import csv
import tempfile
import unittest
from pathlib import Path

from openpyxl import load_workbook

from coursedesk.export_xlsx import describe_schedules, export_courses_to_xlsx, write_import_template
from coursedesk.model import HEADERS
from coursedesk.rows import validate_row
from coursedesk.sheets import SheetError, cell_text, read_sheet, rows_from_table


class TestRowsFromTable(unittest.TestCase):
    def test_header_order_and_case_do_not_matter(self) -> None:
        header = [h.upper() for h in reversed(HEADERS)]
        values = ["Active", "A", 1.0, "2024-2025", "1st Semester", "A101", "Intro", "CS101"]
        rows = rows_from_table([[], header, [None] * 8, values])
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["Course Code"], "CS101")
        self.assertEqual(rows[0]["Class Number"], "1")

    def test_missing_column(self) -> None:
        with self.assertRaises(SheetError) as ctx:
            rows_from_table([list(HEADERS[:-1]), ["CS101"]])
        self.assertIn("Could not find header row", str(ctx.exception))
        self.assertIn("Status", str(ctx.exception))

    def test_title_and_instruction_rows_above_header(self) -> None:
        table = [
            ["Course Import Template", None, None, None, None, None, None, None],
            [None] * 8,
            ["1. Course Code must be unique", None, None, None, None, None, None, None],
            list(HEADERS),
            ["CS101", "Intro", "A101", "1st Semester", "2024-2025", 1, "A", "Active"],
        ]
        rows = rows_from_table(table)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["Course Code"], "CS101")
        self.assertTrue(validate_row(rows[0]).ok)

    def test_no_header_row_at_all(self) -> None:
        with self.assertRaises(SheetError) as ctx:
            rows_from_table([["just a note"], ["CS101", "Intro"]])
        self.assertEqual(str(ctx.exception), "Could not find header row. Please use the template format.")

    def test_empty_table(self) -> None:
        with self.assertRaises(SheetError):
            rows_from_table([[None, ""], []])

    def test_cell_text(self) -> None:
        self.assertEqual(cell_text(None), "")
        self.assertEqual(cell_text(12.0), "12")
        self.assertEqual(cell_text(" x "), "x")


class TestFiles(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_template_reads_back_as_valid_row(self) -> None:
        path = write_import_template(self.dir / "template.xlsx")
        ws = load_workbook(path).active
        self.assertEqual(ws["A1"].value, "COURSE IMPORT TEMPLATE")
        rows = read_sheet(path)
        self.assertEqual(len(rows), 1)
        self.assertTrue(validate_row(rows[0]).ok)

    def test_csv_sheet(self) -> None:
        path = self.dir / "courses.csv"
        with path.open("w", encoding="utf-8", newline="") as fh:
            writer = csv.writer(fh)
            writer.writerow(list(reversed(HEADERS)))
            writer.writerow(["Inactive", "B", "3", "2025-2026", "2nd Semester", "Room: B2", "Algorithms", "cs201"])
        rows = read_sheet(path)
        res = validate_row(rows[0])
        self.assertTrue(res.ok)
        assert res.value is not None
        self.assertEqual(res.value.code, "CS201")
        self.assertEqual(res.value.room, "B2")

    def test_unsupported_type(self) -> None:
        path = self.dir / "courses.xls"
        path.write_bytes(b"")
        with self.assertRaises(SheetError):
            read_sheet(path)

    def test_export_courses(self) -> None:
        courses = [
            {
                "code": "CS102",
                "title": "Data",
                "section": "A",
                "room": "A1",
                "semester": "1st Semester",
                "academicYear": "2024-2025",
                "classNumber": 2,
                "status": "ACTIVE",
                "schedules": [{"day": "Mon", "fromTime": "08:00", "toTime": "09:30"}],
            },
            {"code": "CS101", "title": "Intro", "section": "A", "status": "INACTIVE", "schedules": []},
        ]
        out = self.dir / "export.xlsx"
        self.assertEqual(export_courses_to_xlsx(courses, out), 2)

        ws = load_workbook(out).active
        rows = list(ws.iter_rows(values_only=True))
        self.assertEqual(list(rows[0]), list(HEADERS) + ["Schedules"])
        self.assertEqual(rows[1][0], "CS101")
        self.assertEqual(rows[2][-1], "Monday 8:00 AM-9:30 AM")
        self.assertEqual(rows[2][7], "Active")

    def test_describe_skips_broken_entries(self) -> None:
        text = describe_schedules(
            [{"day": "Tue", "fromTime": "13:00", "toTime": "14:00"}, {"day": "Xyz", "fromTime": "1", "toTime": "2"}]
        )
        self.assertEqual(text, "Tuesday 1:00 PM-2:00 PM")


if __name__ == "__main__":
    unittest.main()
