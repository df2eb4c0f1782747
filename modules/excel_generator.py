"""
SoloResizer — Excel Report Module

This module converts the bulk resize result rows into a formatted Excel file with:
- Columns in exact REPORT_SCHEMA order
- Header row with blue background and white text
- Alternating row colors
- Failed rows highlighted in red
- Fixed column widths
"""

import io
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter
from config import REPORT_SCHEMA, REPORT_CONFIG


def generate_bulk_report(rows: list[dict]) -> bytes:
    """
    Generate a formatted Excel file from bulk resize rows.

    Parameters:
    - rows: List of dictionaries from process_batch (one dict per input file)

    Returns:
    - bytes: Excel file content as bytes (ready for download)
    """

    wb = Workbook()
    ws = wb.active
    ws.title = REPORT_CONFIG["sheet_name"]

    # ==============================================================================
    # STEP 1: WRITE HEADER ROW
    # ==============================================================================

    ws.append([col["name"] for col in REPORT_SCHEMA])

    header_fill = PatternFill(
        start_color=REPORT_CONFIG["header_bg_color"],
        end_color=REPORT_CONFIG["header_bg_color"],
        fill_type="solid"
    )
    header_font = Font(
        name=REPORT_CONFIG["font_name"],
        size=REPORT_CONFIG["font_size"],
        bold=True,
        color=REPORT_CONFIG["header_font_color"]
    )

    for cell in ws[1]:
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="left", vertical="center")

    ws.row_dimensions[1].height = REPORT_CONFIG["header_row_height"]

    # Freeze the header row (row 1 stays visible when scrolling)
    ws.freeze_panes = "A2"

    # ==============================================================================
    # STEP 2: WRITE DATA ROWS
    # ==============================================================================

    thin_border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )
    alt_fill = PatternFill(
        start_color=REPORT_CONFIG["alt_row_color"],
        end_color=REPORT_CONFIG["alt_row_color"],
        fill_type="solid"
    )
    data_font = Font(
        name=REPORT_CONFIG["font_name"],
        size=REPORT_CONFIG["font_size"]
    )
    failed_fill = PatternFill(
        start_color=REPORT_CONFIG["failed"]["bg"],
        end_color=REPORT_CONFIG["failed"]["bg"],
        fill_type="solid"
    )
    failed_font = Font(
        name=REPORT_CONFIG["font_name"],
        size=REPORT_CONFIG["font_size"],
        color=REPORT_CONFIG["failed"]["font"]
    )

    for row_index, row in enumerate(rows):
        current_row = row_index + 2  # Data starts at row 2 (row 1 is header)

        # Missing and None values become empty cells
        values = []
        for col in REPORT_SCHEMA:
            value = row.get(col["key"])
            values.append("" if value is None else value)
        ws.append(values)

        failed = row.get("status") != "OK"

        for cell in ws[current_row]:
            cell.border = thin_border
            cell.alignment = Alignment(wrap_text=False, vertical="center")

            if failed:
                cell.fill = failed_fill
                cell.font = failed_font
            else:
                cell.font = data_font
                # Alternating row color (even rows get grey background)
                if current_row % 2 == 0:
                    cell.fill = alt_fill

        ws.row_dimensions[current_row].height = REPORT_CONFIG["data_row_height"]

    # ==============================================================================
    # STEP 3: COLUMN WIDTHS
    # ==============================================================================

    for col_index, col in enumerate(REPORT_SCHEMA, start=1):
        ws.column_dimensions[get_column_letter(col_index)].width = col.get("width", 15)

    # ==============================================================================
    # STEP 4: SAVE TO BYTES AND RETURN
    # ==============================================================================

    buffer = io.BytesIO()
    wb.save(buffer)

    return buffer.getvalue()
