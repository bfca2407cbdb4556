"""
Notification Dispatcher Module

Sends the message set for each funding request transition to the right
audience. Decision notifications are best effort: the status change has
already been committed, so a failed send is logged and reported instead of
raised.
"""

import logging
from dataclasses import dataclass, field

from ..config import WorkflowConfig
from ..exceptions import NotifierUnavailable
from ..fund_request.cost_breakdown import compute_breakdown
from ..fund_request.excel_generator import XLSX_MIME_TYPE, DisbursementSheetGenerator
from ..fund_request.models import FundingRequest, RequestStatus
from .message_formatter import MessageFormatter
from .notifier import Attachment, Notifier, OutboundMessage

logger = logging.getLogger(__name__)


@dataclass
class Delivery:
    """Outcome of one send."""

    audience: str  # 'approver', 'requester', 'disburser'
    recipients: list[str]
    success: bool
    message_id: str | None = None
    error: str | None = None


@dataclass
class DispatchReport:
    """Outcomes of all sends for one transition."""

    request_id: str
    deliveries: list[Delivery] = field(default_factory=list)

    @property
    def all_sent(self) -> bool:
        return all(d.success for d in self.deliveries)

    @property
    def failed(self) -> list[Delivery]:
        return [d for d in self.deliveries if not d.success]

    def audiences(self) -> list[str]:
        return [d.audience for d in self.deliveries]


class NotificationDispatcher:
    """Routes funding request notifications to approvers, requesters and disbursers."""

    def __init__(
        self,
        notifier: Notifier,
        config: WorkflowConfig,
        formatter: MessageFormatter | None = None,
        sheet_generator: DisbursementSheetGenerator | None = None,
    ):
        """Initialize dispatcher.

        Args:
            notifier: Message transport
            config: Workflow configuration (audiences and sender)
            formatter: Message formatter
            sheet_generator: Workbook generator for disburser attachments
        """
        self.notifier = notifier
        self.config = config
        self.formatter = formatter or MessageFormatter(config.currency_symbol)
        self.sheet_generator = sheet_generator or DisbursementSheetGenerator()

    def notify_submitted(self, record: FundingRequest, decision_url: str) -> DispatchReport:
        """Send the decision request to the approvers.

        Raises:
            NotifierUnavailable: If the message could not be sent
        """
        breakdown = compute_breakdown(record.form_data)
        message = self.formatter.submission_message(
            record,
            breakdown,
            decision_url,
            to=self.config.approver_emails,
            sender=self.config.from_email,
        )

        try:
            message_id = self.notifier.send(message)
        except NotifierUnavailable as e:
            logger.error(f"Failed to send approver notification for {record.id}: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to send approver notification for {record.id}: {e}")
            raise NotifierUnavailable(f"Failed to send notification email: {e}") from e

        logger.info(f"Approver notification for {record.id} sent: {message_id}")
        return DispatchReport(record.id, [Delivery("approver", message.to, True, message_id)])

    def notify_decided(self, record: FundingRequest) -> DispatchReport:
        """Notify the requester, and the disbursers on acceptance.

        Each send is independent; failures are logged and reported.
        """
        report = DispatchReport(record.id)

        try:
            requester_message = self.formatter.requester_message(record, sender=self.config.from_email)
        except Exception as e:
            logger.error(f"Failed to render requester notification for {record.id}: {e}")
            report.deliveries.append(Delivery("requester", [record.requester_email], False, error=str(e)))
        else:
            report.deliveries.append(self._send("requester", record, requester_message))

        if record.status is RequestStatus.ACCEPTED:
            if not self.config.disburser_emails:
                logger.error(f"No disbursers configured; request {record.id} needs manual follow-up")
                report.deliveries.append(Delivery("disburser", [], False, error="No disbursers configured"))
            else:
                report.deliveries.append(self._send_disbursement(record))

        return report

    def _send_disbursement(self, record: FundingRequest) -> Delivery:
        try:
            breakdown = compute_breakdown(record.form_data)
            message = self.formatter.disburser_message(
                record,
                breakdown,
                to=self.config.disburser_emails,
                sender=self.config.from_email,
            )
            message.attachments.append(Attachment(
                filename=self.sheet_generator.filename(record),
                content=self.sheet_generator.generate(record, breakdown),
                mime_type=XLSX_MIME_TYPE,
            ))
        except Exception as e:
            logger.error(f"Failed to render disburser notification for {record.id}: {e}")
            return Delivery("disburser", list(self.config.disburser_emails), False, error=str(e))

        return self._send("disburser", record, message)

    def _send(self, audience: str, record: FundingRequest, message: OutboundMessage) -> Delivery:
        try:
            message_id = self.notifier.send(message)
        except Exception as e:
            logger.error(f"Failed to send {audience} notification for {record.id}: {e}")
            return Delivery(audience, message.to, False, error=str(e))

        logger.info(f"{audience.title()} notification for {record.id} sent to: {', '.join(message.to)}")
        return Delivery(audience, message.to, True, message_id)
