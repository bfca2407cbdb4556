"""
Cost Breakdown Module

Turns the itemized expense fields of a funding request into categorized,
summed amounts split by payment timing.
"""

import logging
from dataclasses import dataclass, field
from decimal import Context, Decimal, InvalidOperation, localcontext
from typing import Any, Mapping

from ..exceptions import ValidationError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Amounts are bounded so that sums computed in SUM_CONTEXT are exact
MAX_AMOUNT = Decimal("1e15")
MIN_EXPONENT = -20
SUM_CONTEXT = Context(prec=60)

TRUE_VALUES = {"true", "on", "yes", "1"}

# Categories the department may pay before the event:
# (category, label, amount field, pay-ahead flag)
PAY_AHEAD_CATEGORIES = [
    ("registration", "Registration", "registration_fee", "pay_ahead_registration"),
    ("hotel", "Hotel", "hotel_cost", "pay_ahead_hotel"),
    ("flight", "Airfare", "flight_cost", "pay_ahead_flight"),
]

# Superseded field names, read only when the canonical field is blank
LEGACY_AMOUNT_FIELDS = {
    "hotel_cost": "hotel_total",
}


@dataclass(frozen=True)
class CostItem:
    """Single labelled amount in a breakdown."""

    label: str
    amount: Decimal

    def to_dict(self) -> dict:
        return {"label": self.label, "amount": str(self.amount)}


@dataclass(frozen=True)
class CostBreakdown:
    """Derived cost view of a funding request."""

    registration: Decimal = ZERO
    hotel: Decimal = ZERO
    flight: Decimal = ZERO
    mileage: Decimal = ZERO
    meals: Decimal = ZERO
    prepaid_items: list[CostItem] = field(default_factory=list)
    reimbursement_items: list[CostItem] = field(default_factory=list)

    @property
    def prepaid_total(self) -> Decimal:
        return _exact_sum(item.amount for item in self.prepaid_items)

    @property
    def reimbursement_total(self) -> Decimal:
        return _exact_sum(item.amount for item in self.reimbursement_items)

    @property
    def total_cost(self) -> Decimal:
        return _exact_sum([self.registration, self.hotel, self.flight, self.mileage, self.meals])

    def to_dict(self) -> dict:
        return {
            "registration": str(self.registration),
            "hotel": str(self.hotel),
            "flight": str(self.flight),
            "mileage": str(self.mileage),
            "meals": str(self.meals),
            "prepaidItems": [item.to_dict() for item in self.prepaid_items],
            "prepaidTotal": str(self.prepaid_total),
            "reimbursementItems": [item.to_dict() for item in self.reimbursement_items],
            "reimbursementTotal": str(self.reimbursement_total),
            "totalCost": str(self.total_cost),
        }


def _exact_sum(amounts) -> Decimal:
    with localcontext(SUM_CONTEXT):
        return sum(amounts, ZERO)


def parse_amount(value: Any) -> Decimal:
    """Parse a form amount into a Decimal.

    Blank, non-numeric, non-finite and negative values count as zero.

    Args:
        value: Raw form value (string, number or None)

    Returns:
        Non-negative Decimal amount

    Raises:
        ValidationError: If the amount is too large to total exactly
    """
    if value is None or isinstance(value, bool):
        return ZERO

    text = str(value).strip().replace(",", "").lstrip("$")
    if not text:
        return ZERO

    try:
        amount = Decimal(text)
    except InvalidOperation:
        logger.debug(f"Ignoring non-numeric amount: {value!r}")
        return ZERO

    if not amount.is_finite() or amount <= ZERO:
        return ZERO

    if amount >= MAX_AMOUNT:
        logger.warning(f"Rejecting out-of-range amount: {value!r}")
        raise ValidationError(f"Amount out of range: {value!r}")

    if amount.as_tuple().exponent < MIN_EXPONENT:
        amount = amount.quantize(Decimal(1).scaleb(MIN_EXPONENT), context=SUM_CONTEXT)
        if amount == ZERO:
            return ZERO

    return amount


def parse_flag(value: Any) -> bool:
    """Interpret a checkbox-style form value."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUE_VALUES


def field_amount(form_data: Mapping[str, Any], name: str) -> Decimal:
    """Read an amount field, falling back to its legacy name when blank."""
    amount = parse_amount(form_data.get(name))
    legacy = LEGACY_AMOUNT_FIELDS.get(name)
    if amount == ZERO and legacy and not str(form_data.get(name) or "").strip():
        amount = parse_amount(form_data.get(legacy))
    return amount


def mileage_label(form_data: Mapping[str, Any]) -> str:
    miles = str(form_data.get("mileage_miles") or "").strip() or "?"
    return f"Mileage ({miles} mi)"


def compute_breakdown(form_data: Mapping[str, Any]) -> CostBreakdown:
    """Compute the cost breakdown for a request's form data.

    Registration, hotel and flight are prepaid when their pay-ahead flag is
    set and reimbursed otherwise. Mileage and meals are only known after the
    trip, so they are always reimbursed.

    Args:
        form_data: Submitted form fields

    Returns:
        CostBreakdown with per-category amounts and the prepaid/reimbursement split
    """
    amounts = {}
    prepaid_items = []
    reimbursement_items = []

    for category, label, amount_field, flag_field in PAY_AHEAD_CATEGORIES:
        amount = field_amount(form_data, amount_field)
        amounts[category] = amount
        if amount == ZERO:
            continue
        if parse_flag(form_data.get(flag_field)):
            prepaid_items.append(CostItem(label, amount))
        else:
            reimbursement_items.append(CostItem(label, amount))

    mileage = field_amount(form_data, "mileage_total") if parse_flag(form_data.get("mileage_needed")) else ZERO
    meals = field_amount(form_data, "meals_total") if parse_flag(form_data.get("meals_needed")) else ZERO

    if mileage > ZERO:
        reimbursement_items.append(CostItem(mileage_label(form_data), mileage))
    if meals > ZERO:
        reimbursement_items.append(CostItem("Meals / Per Diem", meals))

    return CostBreakdown(
        registration=amounts["registration"],
        hotel=amounts["hotel"],
        flight=amounts["flight"],
        mileage=mileage,
        meals=meals,
        prepaid_items=prepaid_items,
        reimbursement_items=reimbursement_items,
    )
