"""Report generation and export endpoints."""
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from typing import Dict, List
from io import BytesIO
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter
from datetime import datetime, timezone
from tax_export.api.deps import get_wallet_service, run_pipeline
from tax_export.models.report import CsvFormat, ExportFormat, ExportRequest
from tax_export.models.wallet import FetchMetadata
from tax_export.services.csv_exporter import (
    convert_to_awaken_rows,
    generate_csv_content,
    generate_filename,
)
from tax_export.services.wallet_service import WalletService

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def generate_excel_report(rows: List[Dict[str, str]], metadata: FetchMetadata) -> BytesIO:
    """
    Generate an Excel workbook from Awaken rows.

    Creates two sheets:
    1. Summary - Wallet, chain and fetch statistics
    2. Transactions - The standard Awaken rows
    """
    wb = Workbook()

    # Remove default sheet
    if "Sheet" in wb.sheetnames:
        wb.remove(wb["Sheet"])

    header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF")

    # Summary sheet
    ws_summary = wb.create_sheet("Summary", 0)
    ws_summary.append(["Awaken Tax Export"])
    ws_summary.append(["Chain", metadata.chain])
    ws_summary.append(["Wallet", metadata.address])
    ws_summary.append(["Generated At", datetime.now(timezone.utc).isoformat()])
    ws_summary.append([])
    ws_summary.append(["Metric", "Value"])
    ws_summary.append(["Transactions", metadata.total_fetched])
    ws_summary.append(["First Transaction", metadata.first_transaction_date.isoformat() if metadata.first_transaction_date else ""])
    ws_summary.append(["Last Transaction", metadata.last_transaction_date.isoformat() if metadata.last_transaction_date else ""])
    ws_summary.append(["Data Source", metadata.data_source])
    ws_summary.append(["Pages Fetched", metadata.pages_fetched])
    for stream, count in metadata.stream_counts.items():
        ws_summary.append([f"Records ({stream})", count])

    for cell in ws_summary[6]:
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center")

    # Transactions sheet
    ws_tx = wb.create_sheet("Transactions", 1)
    if rows:
        headers = list(rows[0].keys())
        ws_tx.append(headers)
        for cell in ws_tx[1]:
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = Alignment(horizontal="center")
        for row in rows:
            ws_tx.append([row.get(header, "") for header in headers])

        # Auto-adjust column widths
        for column in ws_tx.columns:
            column_letter = get_column_letter(column[0].column)
            max_length = max(len(str(cell.value or "")) for cell in column)
            ws_tx.column_dimensions[column_letter].width = min(max_length + 2, 50)

    # Save to BytesIO
    output = BytesIO()
    wb.save(output)
    output.seek(0)

    return output


@router.post("/export")
async def export_report(
    request: ExportRequest,
    service: WalletService = Depends(get_wallet_service)
):
    """
    Export a wallet's history as an Awaken Tax CSV or an Excel workbook.

    Formats:
    - standard: Awaken standard CSV (received/sent columns)
    - trading: Awaken trading CSV (asset/amount/tag)
    - excel: Summary and transactions workbook
    """
    report = await run_pipeline(service, request.chain, request.address)
    address = report.metadata.address or request.address

    if request.format == ExportFormat.EXCEL:
        rows = convert_to_awaken_rows(report.transactions, address, CsvFormat.STANDARD)
        filename = generate_filename(report.metadata.chain, address, CsvFormat.STANDARD).replace(".csv", ".xlsx")
        return StreamingResponse(
            generate_excel_report(rows, report.metadata),
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    fmt = CsvFormat(request.format.value)
    rows = convert_to_awaken_rows(report.transactions, address, fmt)
    filename = generate_filename(report.metadata.chain, address, fmt)
    return StreamingResponse(
        iter([generate_csv_content(rows)]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
