"""
Disbursement Workbook Generator Module

Generates the Excel workbook attached to the disburser email of an
accepted funding request.
"""

import logging
from decimal import Decimal
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from .cost_breakdown import CostBreakdown, CostItem
from .models import FundingRequest

logger = logging.getLogger(__name__)

XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class DisbursementSheetGenerator:
    """Generates disbursement workbooks for accepted requests."""

    def __init__(self, sheet_name: str = "Disbursement"):
        """Initialize the generator.

        Args:
            sheet_name: Title of the worksheet
        """
        self.sheet_name = sheet_name
        self._setup_styles()

    def _setup_styles(self) -> None:
        """Setup workbook styles."""
        self.header_font = Font(name="Arial", size=14, bold=True)
        self.section_font = Font(name="Arial", size=11, bold=True)
        self.section_fill = PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid")
        self.total_font = Font(name="Arial", size=11, bold=True)
        self.total_fill = PatternFill(start_color="FFFF00", end_color="FFFF00", fill_type="solid")
        self.normal_font = Font(name="Arial", size=10)

        thin_border = Side(style="thin", color="000000")
        self.border = Border(left=thin_border, right=thin_border, top=thin_border, bottom=thin_border)

        self.left_align = Alignment(horizontal="left", vertical="center")
        self.right_align = Alignment(horizontal="right", vertical="center")

        self.currency_format = "#,##0.00"

    def filename(self, record: FundingRequest) -> str:
        return f"{record.id}_disbursement.xlsx"

    def generate(self, record: FundingRequest, breakdown: CostBreakdown) -> bytes:
        """Generate the workbook for a request.

        Args:
            record: Accepted funding request
            breakdown: Cost breakdown of the request

        Returns:
            xlsx file content
        """
        wb = Workbook()
        ws = wb.active
        ws.title = self.sheet_name

        ws.column_dimensions["A"].width = 32
        ws.column_dimensions["B"].width = 40

        current_row = self._write_header(ws, 1, record)
        current_row += 1

        current_row = self._write_section(ws, current_row, "Itemized Costs", [
            CostItem("Registration Fee", breakdown.registration),
            CostItem("Hotel / Accommodations", breakdown.hotel),
            CostItem("Airfare / Flight", breakdown.flight),
            CostItem("Mileage", breakdown.mileage),
            CostItem("Meals / Per Diem", breakdown.meals),
        ])
        current_row += 1

        current_row = self._write_section(
            ws, current_row, "Pay Now (Prepaid)", breakdown.prepaid_items, breakdown.prepaid_total
        )
        current_row += 1

        current_row = self._write_section(
            ws, current_row, "Reimburse After Event", breakdown.reimbursement_items, breakdown.reimbursement_total
        )
        current_row += 1

        self._write_total(ws, current_row, "APPROVED TOTAL", breakdown.total_cost)

        buffer = BytesIO()
        wb.save(buffer)
        logger.info(f"Generated disbursement workbook for {record.id}")
        return buffer.getvalue()

    def _write_header(self, ws, row: int, record: FundingRequest) -> int:
        data = record.form_data

        ws.cell(row=row, column=1, value="TRAINING FUNDS DISBURSEMENT").font = self.header_font
        row += 1

        details = [
            ("Request ID", record.id),
            ("Requester", data.get("requester_name", "")),
            ("Email", record.requester_email),
            ("Training", data.get("training_description", "")),
            ("Dates", data.get("training_dates", "")),
            ("Location", data.get("training_location", "")),
            ("Decided", record.decided_at.strftime("%Y-%m-%d %H:%M UTC") if record.decided_at else ""),
        ]
        for label, value in details:
            ws.cell(row=row, column=1, value=label).font = self.section_font
            cell = ws.cell(row=row, column=2, value=str(value or ""))
            cell.font = self.normal_font
            cell.alignment = self.left_align
            row += 1

        return row

    def _write_section(
        self,
        ws,
        row: int,
        title: str,
        items: list[CostItem],
        subtotal: Decimal | None = None,
    ) -> int:
        for column in (1, 2):
            cell = ws.cell(row=row, column=column)
            cell.fill = self.section_fill
            cell.border = self.border
        ws.cell(row=row, column=1, value=title).font = self.section_font
        row += 1

        for item in items:
            label_cell = ws.cell(row=row, column=1, value=item.label)
            label_cell.font = self.normal_font
            label_cell.border = self.border

            amount_cell = ws.cell(row=row, column=2, value=float(item.amount))
            amount_cell.font = self.normal_font
            amount_cell.number_format = self.currency_format
            amount_cell.alignment = self.right_align
            amount_cell.border = self.border
            row += 1

        if subtotal is not None:
            row = self._write_total(ws, row, "Subtotal", subtotal)

        return row

    def _write_total(self, ws, row: int, label: str, amount: Decimal) -> int:
        label_cell = ws.cell(row=row, column=1, value=label)
        label_cell.font = self.total_font
        label_cell.fill = self.total_fill
        label_cell.border = self.border

        amount_cell = ws.cell(row=row, column=2, value=float(amount))
        amount_cell.font = self.total_font
        amount_cell.fill = self.total_fill
        amount_cell.number_format = self.currency_format
        amount_cell.alignment = self.right_align
        amount_cell.border = self.border

        return row + 1
