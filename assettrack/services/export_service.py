"""
Export service — generate CSV and Excel reports of assets and
discrepancies.

All export functions return a BytesIO buffer ready to be sent as a
Flask response with the appropriate content type.
"""

import csv
import io
import logging

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from assettrack.models.asset import Asset
from assettrack.models.discrepancy import Discrepancy

logger = logging.getLogger(__name__)

# Excel header styling constants.
_HEADER_FONT = Font(bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill(start_color="2B579A", end_color="2B579A", fill_type="solid")
_HEADER_ALIGN = Alignment(horizontal="center", wrap_text=True)
_CURRENCY_FORMAT = "#,##0.00"

ASSET_HEADERS = [
    "Asset Tag",
    "Serial Number",
    "Name",
    "Category",
    "Status",
    "Condition",
    "Location",
    "Custodian",
    "Department",
    "Current Value",
    "Last Scanned",
    "Has Discrepancy",
]

DISCREPANCY_HEADERS = [
    "ID",
    "Owner",
    "Type",
    "Status",
    "Priority",
    "Expected",
    "Actual",
    "Detected At",
    "Resolved At",
    "Resolution",
]

EXPORT_FORMATS = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


# =========================================================================
# Row builders
# =========================================================================


def _asset_row(asset: Asset) -> list:
    return [
        asset.asset_tag,
        asset.serial_number,
        asset.name,
        asset.category,
        asset.status,
        asset.condition,
        asset.location,
        asset.custodian,
        asset.department,
        float(asset.current_value) if asset.current_value is not None else None,
        asset.last_scanned_at.strftime("%Y-%m-%d %H:%M") if asset.last_scanned_at else None,
        "Yes" if asset.has_discrepancy else "No",
    ]


def _discrepancy_row(discrepancy: Discrepancy) -> list:
    if discrepancy.asset_id is not None:
        owner = f"Asset {discrepancy.asset_id}"
    else:
        owner = f"Movement {discrepancy.movement_id}"
    return [
        discrepancy.id,
        owner,
        discrepancy.type,
        discrepancy.status,
        discrepancy.priority,
        discrepancy.expected_value,
        discrepancy.actual_value,
        discrepancy.detected_at.strftime("%Y-%m-%d %H:%M") if discrepancy.detected_at else None,
        discrepancy.resolved_at.strftime("%Y-%m-%d %H:%M") if discrepancy.resolved_at else None,
        discrepancy.resolution,
    ]


# =========================================================================
# Public API
# =========================================================================


def export_assets(assets: list[Asset], fmt: str) -> io.BytesIO:
    """Export assets as ``csv`` or ``xlsx``."""
    rows = [_asset_row(asset) for asset in assets]
    logger.info("Exporting %d assets as %s", len(rows), fmt)
    if fmt == "xlsx":
        return _to_excel("Assets", ASSET_HEADERS, rows, currency_columns=(10,))
    return _to_csv(ASSET_HEADERS, rows)


def export_discrepancies(discrepancies: list[Discrepancy], fmt: str) -> io.BytesIO:
    """Export discrepancies as ``csv`` or ``xlsx``."""
    rows = [_discrepancy_row(d) for d in discrepancies]
    logger.info("Exporting %d discrepancies as %s", len(rows), fmt)
    if fmt == "xlsx":
        return _to_excel("Discrepancies", DISCREPANCY_HEADERS, rows)
    return _to_csv(DISCREPANCY_HEADERS, rows)


# =========================================================================
# Internal helpers
# =========================================================================


def _to_csv(headers: list[str], rows: list[list]) -> io.BytesIO:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    writer.writerows(rows)

    # BOM so Excel opens the file as UTF-8.
    buffer = io.BytesIO()
    buffer.write(output.getvalue().encode("utf-8-sig"))
    buffer.seek(0)
    return buffer


def _to_excel(
    title: str,
    headers: list[str],
    rows: list[list],
    currency_columns: tuple[int, ...] = (),
) -> io.BytesIO:
    wb = Workbook()
    ws = wb.active
    ws.title = title

    _write_header_row(ws, headers)
    for row_idx, row in enumerate(rows, start=2):
        for col_idx, value in enumerate(row, start=1):
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            if col_idx in currency_columns and value is not None:
                cell.number_format = _CURRENCY_FORMAT

    _auto_fit_columns(ws)

    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer


def _write_header_row(ws, headers: list[str]) -> None:
    """Write a styled header row to an Excel worksheet."""
    for col_idx, header in enumerate(headers, start=1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = _HEADER_ALIGN


def _auto_fit_columns(ws) -> None:
    """Auto-fit column widths based on content (approximate)."""
    for col in ws.columns:
        max_length = 0
        col_letter = get_column_letter(col[0].column)
        for cell in col:
            if cell.value:
                max_length = max(max_length, len(str(cell.value)))
        ws.column_dimensions[col_letter].width = min(max_length + 4, 40)
