"""Subject, HTML and plain-text bodies for each notification kind."""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

from jinja2 import Environment, FileSystemLoader, select_autoescape

from banani.core.config import settings
from banani.core.errors import ValidationFailure
from banani.utils.numbers import round2, to_decimal

BRAND = "BananiExpense"
FOOTER = f"© {BRAND}. All rights reserved."

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

# Only the .html body is escaped; the plain-text body is sent as-is
env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


class NotificationKind(str, Enum):
    SIGNUP = "signup"
    LOGIN = "login"
    NEW_ENTRY = "new-entry"
    MONTHLY_EARNINGS = "monthly-earnings"
    PAYMENT_DUE = "payment-due"


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    html: str
    text: str


def _amount(payload: Mapping[str, Any], key: str) -> Decimal:
    try:
        return round2(to_decimal(payload.get(key)))
    except ValueError:
        raise ValidationFailure(f"Notification field '{key}' must be a number", code="INVALID_PAYLOAD")


def _field(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None or value == "":
        raise ValidationFailure(f"Notification field '{key}' is required", code="INVALID_PAYLOAD")
    return str(value)


def render_to_string(template_name: str, context: Mapping[str, Any]) -> str:
    return env.get_template(template_name).render(**context)


def _build(subject: str, heading: str, paragraphs: list[str], stats: list[tuple[str, str]]) -> EmailTemplate:
    context = {"heading": heading, "paragraphs": paragraphs, "stats": stats, "footer": FOOTER}
    return EmailTemplate(
        subject=subject,
        html=render_to_string("notification.html", context),
        text=render_to_string("notification.txt", context)
    )


def _signup(name: str, payload: Mapping[str, Any]) -> EmailTemplate:
    return _build(
        f"Welcome to {BRAND} - Account Created",
        f"Welcome to {BRAND}!",
        [f"Hi {name},", "Your account has been created. You can now record your daily weighings and track your earnings."],
        [("Email", _field(payload, "email"))]
    )


def _login(name: str, payload: Mapping[str, Any]) -> EmailTemplate:
    return _build(
        f"New Login to Your {BRAND} Account",
        "New Login Detected",
        [f"Hi {name},", "We noticed a new login to your account. If this wasn't you, change your password immediately."],
        [("Time", _field(payload, "timestamp"))]
    )


def _new_entry(name: str, payload: Mapping[str, Any]) -> EmailTemplate:
    currency = payload.get("currency") or settings.CURRENCY
    return _build(
        f"New Entry Recorded - {BRAND}",
        "New Entry Recorded!",
        [f"Hi {name},", "Your new delivery entry has been recorded successfully!"],
        [
            ("Date", _field(payload, "date")),
            ("Total Weight", f"{_amount(payload, 'weight')} kg"),
            ("Earnings", f"{currency} {_amount(payload, 'earnings')}"),
        ]
    )


def _monthly_earnings(name: str, payload: Mapping[str, Any]) -> EmailTemplate:
    month = _field(payload, "month")
    return _build(
        f"Your {month} Earnings Summary - {BRAND}",
        f"{month} Earnings Summary",
        [f"Hi {name},", f"Here is how {month} went."],
        [
            ("Total Earnings", f"{settings.CURRENCY} {_amount(payload, 'totalEarnings')}"),
            ("Total Weight", f"{_amount(payload, 'totalWeight')} kg"),
            ("Entries", _field(payload, "entryCount")),
        ]
    )


def _payment_due(name: str, payload: Mapping[str, Any]) -> EmailTemplate:
    return _build(
        f"Payment Due Reminder - {BRAND}",
        "Payment Due Reminder",
        [f"Hi {name},", "A payment for one of your entries is due."],
        [
            ("Due Date", _field(payload, "dueDate")),
            ("Amount", f"{settings.CURRENCY} {_amount(payload, 'amount')}"),
        ]
    )


_RENDERERS: Dict[NotificationKind, Callable[[str, Mapping[str, Any]], EmailTemplate]] = {
    NotificationKind.SIGNUP: _signup,
    NotificationKind.LOGIN: _login,
    NotificationKind.NEW_ENTRY: _new_entry,
    NotificationKind.MONTHLY_EARNINGS: _monthly_earnings,
    NotificationKind.PAYMENT_DUE: _payment_due,
}


def render(kind: NotificationKind, display_name: str, payload: Mapping[str, Any]) -> EmailTemplate:
    """Render the email for ``kind``. Raises ValidationFailure on a bad payload."""
    return _RENDERERS[NotificationKind(kind)](display_name or "User", payload)
