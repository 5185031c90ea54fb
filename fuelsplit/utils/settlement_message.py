"""Settlement message formatting utilities."""
import logging
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import quote

from babel.core import UnknownLocaleError
from babel.dates import format_datetime, get_timezone
from babel.numbers import format_currency as babel_format_currency

from fuelsplit.core.config import settings
from fuelsplit.core.participants import Participants
from fuelsplit.models.ledger import LedgerState, Number
from fuelsplit.utils.ledger_validation import add_km

logger = logging.getLogger(__name__)

SHARE_URL = "https://wa.me/"


def format_currency(
    amount: float,
    currency: Optional[str] = None,
    locale: Optional[str] = None,
    symbol: Optional[str] = None
) -> str:
    """
    Localized currency display, at most two decimals.

    Falls back to `<symbol><amount with two decimals>` when the locale or
    currency cannot be formatted.
    """
    currency = currency or settings.CURRENCY
    locale = locale or settings.LOCALE
    try:
        return babel_format_currency(amount, currency, locale=locale)
    except (UnknownLocaleError, ValueError, TypeError) as exc:
        logger.warning("Currency formatting failed for %s/%s: %s", currency, locale, exc)
        return f"{symbol or settings.CURRENCY_SYMBOL}{amount:.2f}"


def format_km(value: Number) -> str:
    """Distances print without a trailing `.0` when integral."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_timestamp(
    timestamp_ms: int,
    locale: Optional[str] = None,
    tz_name: Optional[str] = None
) -> str:
    """Locale-formatted date and time of an epoch-millisecond timestamp."""
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    try:
        return format_datetime(
            moment,
            format="medium",
            tzinfo=get_timezone(tz_name or settings.TIMEZONE),
            locale=locale or settings.LOCALE
        )
    except (UnknownLocaleError, LookupError, ValueError) as exc:
        logger.warning("Date formatting failed: %s", exc)
        return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def build_settlement_message(
    state: LedgerState,
    participants: Participants,
    timestamp_ms: int,
    currency: Optional[str] = None,
    locale: Optional[str] = None,
    tz_name: Optional[str] = None,
    symbol: Optional[str] = None
) -> str:
    """
    Build the shareable settlement summary from the pre-reset state.

    The odometer line is omitted when no reading has been recorded.
    """
    def money(amount: float) -> str:
        return format_currency(amount, currency=currency, locale=locale, symbol=symbol)

    price = state.price_per_km
    total_km = add_km(*(state.km_by.get(name, 0) for name in participants.names))

    lines: List[str] = [
        f"Fuel split reset ({format_timestamp(timestamp_ms, locale=locale, tz_name=tz_name)})",
        f"Price per km: {money(price)}",
        "Totals since last reset:",
    ]
    for name in participants.names:
        km = state.km_by.get(name, 0)
        lines.append(f"- {name}: {format_km(km)} km => {money(km * price)}")
    lines.append(f"Total: {format_km(total_km)} km => {money(total_km * price)}")
    if state.last_odometer is not None:
        lines.append(f"Odometer: {format_km(state.last_odometer)} km")
    lines.append("Please settle accordingly.")

    return "\n".join(lines)


def build_share_url(message: str) -> str:
    """WhatsApp deep link that pre-fills `message`; opening it is up to the client."""
    return f"{SHARE_URL}?text={quote(message, safe='')}"
