"""
Message Formatter Module

Renders the approver, requester and disburser emails for funding requests
as plain text with a simple HTML alternative.
"""

import html
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from ..fund_request.cost_breakdown import CostBreakdown, CostItem, parse_flag
from ..fund_request.models import FundingRequest, RequestStatus
from .notifier import OutboundMessage

logger = logging.getLogger(__name__)

RULE = "=" * 50
THIN_RULE = "-" * 40

SPREADSHEET_COLUMNS = [
    "Request ID", "Name", "Email", "Training", "Dates", "Location",
    "Registration", "Hotel", "Flight", "Mileage", "Meals",
    "Total", "Prepaid", "Reimbursement",
]


@dataclass
class Section:
    """Titled block of label/value rows or free text."""

    title: str
    rows: list[tuple[str, str]] = field(default_factory=list)
    body: str | None = None


class MessageFormatter:
    """Formats funding request notifications."""

    STATUS_HEADLINES = {
        RequestStatus.ACCEPTED: "ACCEPTED",
        RequestStatus.SENT_BACK: "SENT BACK",
        RequestStatus.REJECTED: "REJECTED",
    }

    NEXT_STEPS = {
        RequestStatus.ACCEPTED: (
            "Next Steps: The disbursement team has been notified and will process your "
            "request for payment/reimbursement as indicated."
        ),
        RequestStatus.SENT_BACK: (
            "Action Required: Please review the comments above and submit a revised request."
        ),
    }

    def __init__(self, currency_symbol: str = "$"):
        """Initialize formatter.

        Args:
            currency_symbol: Prefix for formatted amounts
        """
        self.currency_symbol = currency_symbol

    def format_currency(self, amount: Decimal) -> str:
        """Format an amount, or N/A when there is nothing to show."""
        if not amount:
            return "N/A"
        return f"{self.currency_symbol}{amount:,.2f}"

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def submission_message(
        self,
        record: FundingRequest,
        breakdown: CostBreakdown,
        decision_url: str,
        to: list[str],
        sender: str | None = None,
    ) -> OutboundMessage:
        """Approver email with everything needed to decide."""
        data = record.form_data
        sections = [
            self._requester_section(record, include_email=True),
            self._training_section(record),
            self._itemized_section(record, breakdown),
            *self._vehicle_sections(record),
            Section("Cost Breakdown", rows=[
                ("Total Request", self.format_currency(breakdown.total_cost)),
                ("Payment Timing", self._timing_summary(breakdown)),
            ]),
            *self._notes_sections(record),
        ]

        action = Section("Action Required", body=f"Submit your decision here:\n{decision_url}")

        title = f"Training Funds Request #{record.id}"
        text = self._render_text([title, RULE, ""], sections + [action])
        page = self._render_html(
            title,
            sections,
            footer_html=(
                f'<p><a href="{html.escape(decision_url)}">Review &amp; Decide</a></p>'
                "<p>Click above to approve, send back, or reject this request.</p>"
            ),
        )

        return OutboundMessage(
            to=list(to),
            subject=f"Training Funds Request {record.id} - {data.get('requester_name', record.requester_name)}",
            text=text,
            html=page,
            sender=sender,
            reply_to=record.requester_email,
        )

    def requester_message(
        self,
        record: FundingRequest,
        sender: str | None = None,
    ) -> OutboundMessage:
        """Status update email for the requester."""
        data = record.form_data
        headline = self.STATUS_HEADLINES[record.status]

        sections = []
        if record.comments:
            sections.append(Section("Approver Comments", body=record.comments))
        sections.append(Section("Request Summary", rows=[
            ("Training", self._value(data.get("training_description"))),
            ("Dates", self._value(data.get("training_dates"))),
            ("Location", self._value(data.get("training_location"))),
        ]))
        if record.status in self.NEXT_STEPS:
            sections.append(Section("Next Steps", body=self.NEXT_STEPS[record.status]))

        header = [
            "Training Funds Request Update",
            f"Request ID: {record.id}",
            RULE,
            "",
            f"STATUS: {headline}",
            f"Date: {self._format_date(record.decided_at)}",
            "",
        ]
        text = self._render_text(header, sections)
        page = self._render_html(
            f"Training Funds Request Update: {record.id}",
            sections,
            header_html=f"<p><strong>Status: {record.status.label}</strong></p>",
        )

        return OutboundMessage(
            to=[record.requester_email],
            subject=f"Training Request {record.id} - {record.status.label}",
            text=text,
            html=page,
            sender=sender,
        )

    def disburser_message(
        self,
        record: FundingRequest,
        breakdown: CostBreakdown,
        to: list[str],
        sender: str | None = None,
    ) -> OutboundMessage:
        """Disbursement email with the full breakdown and payment instructions."""
        sections = []
        if record.comments:
            sections.append(Section("Approver Comments", body=record.comments))
        sections.extend([
            self._requester_section(record, include_email=True),
            self._training_section(record),
            self._itemized_section(record, breakdown),
            *self._vehicle_sections(record),
            self._items_section("Pay Now (Prepaid)", breakdown.prepaid_items, breakdown.prepaid_total),
            self._items_section(
                "Reimburse After Event", breakdown.reimbursement_items, breakdown.reimbursement_total
            ),
            Section("Approved Total", rows=[
                ("Approved Total", self.format_currency(breakdown.total_cost)),
                ("Payment Timing", self._timing_summary(breakdown)),
            ]),
            Section("Copy to Spreadsheet (tab-separated)", body="\n".join([
                self.spreadsheet_row(record, breakdown),
                "Columns: " + " | ".join(SPREADSHEET_COLUMNS),
            ])),
            *self._notes_sections(record),
        ])

        header = [
            "APPROVED FOR DISBURSEMENT",
            f"Request ID: {record.id}",
            RULE,
            "",
        ]
        text = self._render_text(header, sections)
        page = self._render_html(
            f"Approved for Disbursement: {record.id}",
            sections,
            header_html="<p><strong>Action Required:</strong> Please process the following training funds request.</p>",
        )

        return OutboundMessage(
            to=list(to),
            subject=f"[ACTION REQUIRED] Approved: Training Request {record.id} - {record.requester_name}",
            text=text,
            html=page,
            sender=sender,
        )

    def spreadsheet_row(self, record: FundingRequest, breakdown: CostBreakdown) -> str:
        """Tab-separated row matching SPREADSHEET_COLUMNS."""
        data = record.form_data
        values = [
            record.id,
            data.get("requester_name", ""),
            record.requester_email,
            data.get("training_description", ""),
            data.get("training_dates", ""),
            data.get("training_location", ""),
            breakdown.registration,
            breakdown.hotel,
            breakdown.flight,
            breakdown.mileage,
            breakdown.meals,
            breakdown.total_cost,
            breakdown.prepaid_total,
            breakdown.reimbursement_total,
        ]
        return "\t".join(str(v).replace("\t", " ").replace("\n", " ") for v in values)

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _requester_section(self, record: FundingRequest, include_email: bool) -> Section:
        data = record.form_data
        rows = [
            ("Name", self._value(data.get("requester_name"))),
            ("Department / Position", self._value(data.get("department_position"))),
        ]
        if include_email:
            rows.append(("Email", record.requester_email))
        rows.append(("Phone", self._value(data.get("phone"))))
        return Section("Requester Information", rows=rows)

    def _training_section(self, record: FundingRequest) -> Section:
        data = record.form_data
        return Section("Training Details", rows=[
            ("Training", self._value(data.get("training_description"))),
            ("Dates", self._value(data.get("training_dates"))),
            ("Location", self._value(data.get("training_location"))),
        ])

    def _itemized_section(self, record: FundingRequest, breakdown: CostBreakdown) -> Section:
        data = record.form_data
        rows = [
            ("Registration Fee", self.format_currency(breakdown.registration)),
            ("Hotel / Accommodations", self.format_currency(breakdown.hotel)),
            ("Airfare / Flight", self.format_currency(breakdown.flight)),
        ]
        if parse_flag(data.get("mileage_needed")):
            miles = str(data.get("mileage_miles") or "").strip() or "?"
            rows.append(("Mileage", f"{miles} miles - {self.format_currency(breakdown.mileage)}"))
        if parse_flag(data.get("meals_needed")):
            rows.append(("Meals / Per Diem", self.format_currency(breakdown.meals)))
        return Section("Itemized Costs", rows=rows)

    def _vehicle_sections(self, record: FundingRequest) -> list[Section]:
        data = record.form_data
        if not parse_flag(data.get("dept_vehicle")):
            return []
        details = str(data.get("dept_vehicle_details") or "").strip() or "To be determined"
        return [Section("Department Vehicle", rows=[("Vehicle Details", details)])]

    def _notes_sections(self, record: FundingRequest) -> list[Section]:
        notes = str(record.form_data.get("additional_notes") or "").strip()
        return [Section("Additional Notes", body=notes)] if notes else []

    def _items_section(self, title: str, items: list[CostItem], total: Decimal) -> Section:
        if not items:
            return Section(title, body="None")
        rows = [(item.label, self.format_currency(item.amount)) for item in items]
        rows.append(("Subtotal", self.format_currency(total)))
        return Section(title, rows=rows)

    def _timing_summary(self, breakdown: CostBreakdown) -> str:
        prepaid = f"{self.currency_symbol}{breakdown.prepaid_total:,.2f}"
        later = f"{self.currency_symbol}{breakdown.reimbursement_total:,.2f}"
        return f"{prepaid} now + {later} later"

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _render_text(self, header: list[str], sections: list[Section]) -> str:
        lines = list(header)
        for section in sections:
            lines.append(section.title.upper())
            lines.extend(f"{label}: {value}" for label, value in section.rows)
            if section.body:
                lines.append(section.body)
            lines.append("")
        return "\n".join(lines).rstrip() + "\n"

    def _render_html(
        self,
        title: str,
        sections: list[Section],
        header_html: str = "",
        footer_html: str = "",
    ) -> str:
        parts = [
            "<!DOCTYPE html>",
            '<html><head><meta charset="utf-8"></head><body>',
            f"<h1>{html.escape(title)}</h1>",
            header_html,
        ]
        for section in sections:
            parts.append(f"<h2>{html.escape(section.title)}</h2>")
            for label, value in section.rows:
                parts.append(f"<p><strong>{html.escape(label)}:</strong> {html.escape(value)}</p>")
            if section.body:
                parts.append(f'<div style="white-space: pre-wrap;">{html.escape(section.body)}</div>')
        parts.append(footer_html)
        parts.append("</body></html>")
        return "\n".join(p for p in parts if p)

    def _value(self, value) -> str:
        text = str(value).strip() if value is not None else ""
        return text or "N/A"

    def _format_date(self, value: datetime | None) -> str:
        return value.strftime("%B %d, %Y") if value else "N/A"
