"""
Tests for Notifications Module

Tests message formatting, the disbursement workbook and the transports.
"""

import smtplib
from decimal import Decimal
from io import BytesIO
from unittest.mock import MagicMock, patch

import pytest
from openpyxl import load_workbook

from training_funds.config import SmtpSettings
from training_funds.exceptions import NotifierUnavailable
from training_funds.fund_request.cost_breakdown import compute_breakdown
from training_funds.fund_request.excel_generator import XLSX_MIME_TYPE, DisbursementSheetGenerator
from training_funds.fund_request.models import FundingRequest, RequestStatus
from training_funds.notifications.dispatcher import NotificationDispatcher
from training_funds.notifications.message_formatter import SPREADSHEET_COLUMNS, MessageFormatter
from training_funds.notifications.notifier import (
    Attachment,
    LoggingNotifier,
    OutboundMessage,
    SmtpNotifier,
)

from conftest import DISBURSER, FIXED_NOW


@pytest.fixture
def formatter() -> MessageFormatter:
    return MessageFormatter()


@pytest.fixture
def pending_record(sample_form_data) -> FundingRequest:
    return FundingRequest(
        id="alice-20250315-1",
        form_data=sample_form_data,
        decision_token="b" * 64,
        submitted_at=FIXED_NOW,
        submitted_by="alice@example.org",
    )


@pytest.fixture
def accepted_record(pending_record) -> FundingRequest:
    return pending_record.with_decision(RequestStatus.ACCEPTED, FIXED_NOW, "Approved for Q2")


class TestMessageFormatter:
    """Tests for MessageFormatter."""

    def test_format_currency(self, formatter):
        assert formatter.format_currency(Decimal("1234.5")) == "$1,234.50"
        assert formatter.format_currency(Decimal("0")) == "N/A"

    def test_custom_currency_symbol(self):
        assert MessageFormatter("€").format_currency(Decimal("10")) == "€10.00"

    def test_submission_message(self, formatter, pending_record):
        breakdown = compute_breakdown(pending_record.form_data)
        url = "https://funds.example.org/decide?requestId=alice-20250315-1&token=bbb"

        message = formatter.submission_message(pending_record, breakdown, url, to=["approver@example.org"])

        assert message.to == ["approver@example.org"]
        assert message.reply_to == "alice@example.org"
        assert "REQUESTER INFORMATION" in message.text
        assert "Training: Hazmat Technician Course" in message.text
        assert "Registration Fee: $120.00" in message.text
        assert "Airfare / Flight: N/A" in message.text
        assert "Mileage: 100 miles - $70.00" in message.text
        assert "Submit your decision here:\n" + url in message.text
        assert "Early-bird registration closes Friday." in message.text
        assert "Review &amp; Decide" in message.html

    def test_html_escapes_form_values(self, formatter, pending_record):
        record = FundingRequest(
            id=pending_record.id,
            form_data={**pending_record.form_data, "training_description": "<script>alert(1)</script>"},
            decision_token=pending_record.decision_token,
            submitted_at=FIXED_NOW,
            submitted_by="alice@example.org",
        )

        message = formatter.submission_message(
            record, compute_breakdown(record.form_data), "https://x/decide", to=["a@example.org"]
        )

        assert "<script>" not in message.html
        assert "&lt;script&gt;" in message.html

    def test_department_vehicle_section(self, formatter, pending_record):
        record = FundingRequest(
            id=pending_record.id,
            form_data={**pending_record.form_data, "dept_vehicle": "on", "dept_vehicle_details": "Unit 12"},
            decision_token=pending_record.decision_token,
            submitted_at=FIXED_NOW,
            submitted_by="alice@example.org",
        )

        message = formatter.submission_message(
            record, compute_breakdown(record.form_data), "https://x/decide", to=["a@example.org"]
        )

        assert "DEPARTMENT VEHICLE" in message.text
        assert "Vehicle Details: Unit 12" in message.text

    def test_requester_message_without_comments(self, formatter, pending_record):
        record = pending_record.with_decision(RequestStatus.ACCEPTED, FIXED_NOW, "")

        message = formatter.requester_message(record)

        assert message.to == ["alice@example.org"]
        assert "APPROVER COMMENTS" not in message.text
        assert "Date: March 15, 2025" in message.text

    def test_rejected_message_has_no_next_steps(self, formatter, pending_record):
        record = pending_record.with_decision(RequestStatus.REJECTED, FIXED_NOW, "No budget")

        message = formatter.requester_message(record)

        assert "NEXT STEPS" not in message.text
        assert "APPROVER COMMENTS\nNo budget" in message.text

    def test_sent_back_message_asks_for_revision(self, formatter, pending_record):
        record = pending_record.with_decision(RequestStatus.SENT_BACK, FIXED_NOW, "Add the agenda")

        message = formatter.requester_message(record)

        assert "submit a revised request" in message.text

    def test_disburser_message(self, formatter, accepted_record):
        breakdown = compute_breakdown(accepted_record.form_data)

        message = formatter.disburser_message(accepted_record, breakdown, to=[DISBURSER])

        assert message.to == [DISBURSER]
        assert "APPROVER COMMENTS\nApproved for Q2" in message.text
        assert "PAY NOW (PREPAID)\nRegistration: $120.00\nSubtotal: $120.00" in message.text
        assert "Hotel: $300.00" in message.text
        assert "Mileage (100 mi): $70.00" in message.text
        assert "Subtotal: $370.00" in message.text
        assert "Approved Total: $490.00" in message.text

    def test_disburser_message_with_nothing_prepaid(self, formatter, accepted_record):
        form = {**accepted_record.form_data, "pay_ahead_registration": False}
        breakdown = compute_breakdown(form)

        message = formatter.disburser_message(accepted_record, breakdown, to=[DISBURSER])

        assert "PAY NOW (PREPAID)\nNone" in message.text

    def test_spreadsheet_row(self, formatter, accepted_record):
        row = formatter.spreadsheet_row(accepted_record, compute_breakdown(accepted_record.form_data))

        values = row.split("\t")
        assert len(values) == len(SPREADSHEET_COLUMNS)
        assert values[0] == "alice-20250315-1"
        assert values[2] == "alice@example.org"
        assert values[-3:] == ["490", "120", "370"]

    def test_spreadsheet_row_flattens_tabs_and_newlines(self, formatter, accepted_record):
        record = FundingRequest(
            id=accepted_record.id,
            form_data={**accepted_record.form_data, "training_description": "Line one\nLine\ttwo"},
            decision_token=accepted_record.decision_token,
            submitted_at=FIXED_NOW,
            submitted_by="alice@example.org",
        )

        row = formatter.spreadsheet_row(record, compute_breakdown(record.form_data))

        assert row.split("\t")[3] == "Line one Line two"


class TestDisbursementSheetGenerator:
    """Tests for DisbursementSheetGenerator."""

    def test_generate_workbook(self, accepted_record):
        generator = DisbursementSheetGenerator()
        content = generator.generate(accepted_record, compute_breakdown(accepted_record.form_data))

        wb = load_workbook(BytesIO(content))
        ws = wb["Disbursement"]
        cells = {
            ws.cell(row=r, column=1).value: ws.cell(row=r, column=2).value
            for r in range(1, ws.max_row + 1)
        }

        assert ws["A1"].value == "TRAINING FUNDS DISBURSEMENT"
        assert cells["Request ID"] == "alice-20250315-1"
        assert cells["Email"] == "alice@example.org"
        assert cells["Registration Fee"] == 120
        assert cells["APPROVED TOTAL"] == 490
        assert "Pay Now (Prepaid)" in cells
        assert "Reimburse After Event" in cells

    def test_filename(self, accepted_record):
        assert DisbursementSheetGenerator().filename(accepted_record) == "alice-20250315-1_disbursement.xlsx"


class TestDispatcher:
    """Tests for NotificationDispatcher edge cases."""

    def test_accepted_without_disbursers_is_reported(self, workflow_config, notifier, accepted_record):
        workflow_config.disburser_emails = []
        dispatcher = NotificationDispatcher(notifier, workflow_config)

        report = dispatcher.notify_decided(accepted_record)

        assert report.audiences() == ["requester", "disburser"]
        assert [d.audience for d in report.failed] == ["disburser"]
        assert len(notifier.sent) == 1

    def test_disburser_attachment(self, workflow_config, notifier, accepted_record):
        report = NotificationDispatcher(notifier, workflow_config).notify_decided(accepted_record)

        assert report.all_sent
        attachment = notifier.sent_to(DISBURSER)[0].attachments[0]
        assert attachment.mime_type == XLSX_MIME_TYPE
        assert attachment.content[:2] == b"PK"


class TestTransports:
    """Tests for notifier transports."""

    def test_logging_notifier(self):
        notifier = LoggingNotifier()
        message = OutboundMessage(to=["a@example.org"], subject="Hello", text="Body")

        assert notifier.send(message) == "log-1"
        assert notifier.sent == [message]

    def test_smtp_build_email(self):
        notifier = SmtpNotifier(SmtpSettings(host="smtp.example.org"))
        message = OutboundMessage(
            to=["a@example.org", "b@example.org"],
            subject="Training Request alice-20250315-1 - Accepted",
            text="STATUS: ACCEPTED",
            html="<p>Accepted</p>",
            sender="Training Funds Request <noreply@example.org>",
            reply_to="alice@example.org",
            attachments=[Attachment("sheet.xlsx", b"PK\x03\x04", XLSX_MIME_TYPE)],
        )

        email = notifier.build_email(message)

        assert email["To"] == "a@example.org, b@example.org"
        assert email["Reply-To"] == "alice@example.org"
        assert email["Message-ID"].endswith("@training-funds>")
        attachments = list(email.iter_attachments())
        assert [a.get_filename() for a in attachments] == ["sheet.xlsx"]
        assert attachments[0].get_content_type() == XLSX_MIME_TYPE

    @patch("training_funds.notifications.notifier.smtplib.SMTP")
    def test_smtp_send(self, mock_smtp):
        server = MagicMock()
        mock_smtp.return_value.__enter__.return_value = server
        settings = SmtpSettings(host="smtp.example.org", port=2525, username="mailer", password="secret")
        message = OutboundMessage(to=["a@example.org"], subject="Hello", text="Body")

        message_id = SmtpNotifier(settings, timeout=5).send(message)

        mock_smtp.assert_called_once_with("smtp.example.org", 2525, timeout=5)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "secret")
        server.send_message.assert_called_once()
        assert message_id.endswith("@training-funds>")

    @patch("training_funds.notifications.notifier.smtplib.SMTP")
    def test_smtp_failure_raises_notifier_unavailable(self, mock_smtp):
        mock_smtp.return_value.__enter__.return_value.send_message.side_effect = (
            smtplib.SMTPRecipientsRefused({"a@example.org": (550, b"No such user")})
        )
        notifier = SmtpNotifier(SmtpSettings(host="smtp.example.org", use_tls=False))

        with pytest.raises(NotifierUnavailable):
            notifier.send(OutboundMessage(to=["a@example.org"], subject="Hello", text="Body"))
