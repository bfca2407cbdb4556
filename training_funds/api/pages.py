"""
Decision Pages

HTML pages served to approvers following the emailed decision link.
"""

import html

from ..fund_request.cost_breakdown import CostBreakdown
from ..fund_request.models import FundingRequest, RequestStatus

CONFIRMATIONS = {
    RequestStatus.ACCEPTED: "The requester and disbursement team have been notified.",
    RequestStatus.SENT_BACK: "The requester has been notified to revise their request.",
    RequestStatus.REJECTED: "The requester has been notified of the rejection.",
}


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        '<html><head><meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">'
        f"<title>{html.escape(title)}</title></head>\n"
        f"<body>\n{body}\n</body></html>"
    )


def message_page(title: str, message: str, back_link: bool = False) -> str:
    """Simple page with a heading and a message."""
    body = f"<h1>{html.escape(title)}</h1>\n<p>{html.escape(message)}</p>"
    if back_link:
        body += '\n<button onclick="history.back()">Go Back</button>'
    return _page(title, body)


def confirmation_page(record: FundingRequest) -> str:
    """Page shown after a decision was recorded."""
    body = (
        f"<h1>Request {html.escape(record.status.label)}</h1>\n"
        f"<p>Request ID: {html.escape(record.id)}</p>\n"
        f"<p>{html.escape(CONFIRMATIONS[record.status])}</p>\n"
        "<p>You can close this window.</p>"
    )
    return _page("Decision Submitted", body)


def decision_form_page(
    record: FundingRequest,
    breakdown: CostBreakdown,
    token: str,
    currency_symbol: str = "$",
) -> str:
    """Form for accepting, sending back or rejecting a pending request."""
    data = record.form_data

    def money(amount) -> str:
        return html.escape(f"{currency_symbol}{amount:,.2f}")

    summary = [
        ("Requester", record.requester_name),
        ("Email", record.requester_email),
        ("Training", str(data.get("training_description") or "N/A")),
        ("Dates", str(data.get("training_dates") or "N/A")),
        ("Location", str(data.get("training_location") or "N/A")),
    ]
    rows = "\n".join(
        f"<p><strong>{html.escape(label)}:</strong> {html.escape(value)}</p>" for label, value in summary
    )

    body = f"""<h1>Training Funds Request {html.escape(record.id)}</h1>
{rows}
<p><strong>Total Request:</strong> {money(breakdown.total_cost)}
({money(breakdown.prepaid_total)} now + {money(breakdown.reimbursement_total)} later)</p>
<form method="post" action="decide">
  <input type="hidden" name="requestId" value="{html.escape(record.id)}">
  <input type="hidden" name="token" value="{html.escape(token)}">
  <fieldset>
    <legend>Decision</legend>
    <label><input type="radio" name="decision" value="accepted" required> Accept</label>
    <label><input type="radio" name="decision" value="sent_back"> Send Back</label>
    <label><input type="radio" name="decision" value="rejected"> Reject</label>
  </fieldset>
  <p><label for="comments">Comments (required when sending back or rejecting)</label></p>
  <textarea id="comments" name="comments" rows="5" cols="60"></textarea>
  <p><button type="submit">Submit Decision</button></p>
</form>"""
    return _page(f"Decide: {record.id}", body)
