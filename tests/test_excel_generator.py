"""Tests for the bulk resize Excel report."""

import io

from openpyxl import load_workbook

from config import REPORT_CONFIG, REPORT_SCHEMA
from modules.excel_generator import generate_bulk_report

ROWS = [
    {
        "filename": "a.png", "status": "OK", "original_dimensions": "4000 x 3000",
        "new_dimensions": "1920 x 1440", "original_kb": 900, "new_kb": 210,
        "quality": 0.734, "output_name": "a_soloresizer.jpg", "error": "",
    },
    {
        "filename": "b.jpg", "status": "Failed", "original_dimensions": "",
        "new_dimensions": "", "original_kb": 1, "new_kb": None,
        "quality": None, "output_name": "", "error": "Could not decode image",
    },
    {
        "filename": "c.png", "status": "OK", "original_dimensions": "100 x 100",
        "new_dimensions": "100 x 100", "original_kb": 12, "new_kb": 8,
        "quality": None, "output_name": "c_soloresizer.jpg", "error": "",
    },
]


def _sheet(rows):
    wb = load_workbook(io.BytesIO(generate_bulk_report(rows)))
    return wb[REPORT_CONFIG["sheet_name"]]


def test_header_follows_report_schema():
    ws = _sheet(ROWS)

    assert [cell.value for cell in ws[1]] == [col["name"] for col in REPORT_SCHEMA]
    assert ws.freeze_panes == "A2"
    assert ws[1][0].font.bold


def test_one_row_per_file_in_order():
    ws = _sheet(ROWS)

    assert ws.max_row == len(ROWS) + 1
    assert [ws.cell(row=i, column=1).value for i in range(2, 5)] == ["a.png", "b.jpg", "c.png"]
    assert ws.cell(row=2, column=6).value == 210
    assert ws.cell(row=2, column=7).value == 0.734


def test_missing_values_become_empty_cells():
    ws = _sheet(ROWS)

    new_kb_column = [col["key"] for col in REPORT_SCHEMA].index("new_kb") + 1
    assert ws.cell(row=3, column=new_kb_column).value in (None, "")


def test_failed_rows_are_highlighted():
    ws = _sheet(ROWS)

    failed_cell = ws.cell(row=3, column=1)
    ok_cell = ws.cell(row=4, column=1)

    assert failed_cell.fill.fgColor.rgb.endswith(REPORT_CONFIG["failed"]["bg"])
    assert failed_cell.font.color.rgb.endswith(REPORT_CONFIG["failed"]["font"])
    assert not ok_cell.fill.fgColor.rgb.endswith(REPORT_CONFIG["failed"]["bg"])


def test_column_widths_come_from_schema():
    ws = _sheet(ROWS)
    assert ws.column_dimensions["A"].width == REPORT_SCHEMA[0]["width"]


def test_empty_report_has_only_the_header():
    ws = _sheet([])
    assert ws.max_row == 1
