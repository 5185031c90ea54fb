from urllib.parse import unquote

from fuelsplit.models.ledger import LedgerState
from fuelsplit.utils.settlement_message import (
    build_settlement_message,
    build_share_url,
    format_currency,
    format_km,
)

from tests.constants import AMIT, JOHN, MESSAGE_OPTIONS


def _state(last_odometer=1227):
    return LedgerState(
        price_per_km=0.5,
        starting_odometer=1000,
        last_odometer=last_odometer,
        km_by={AMIT: 180, JOHN: 47},
        last_entered_by=AMIT,
    )


def test_settlement_message_lines(participants):
    message = build_settlement_message(_state(), participants, 1700000000000, **MESSAGE_OPTIONS)
    lines = message.split("\n")

    assert lines[0].startswith("Fuel split reset (")
    assert lines[0].endswith(")")
    assert lines[1:] == [
        "Price per km: $0.50",
        "Totals since last reset:",
        f"- {AMIT}: 180 km => $90.00",
        f"- {JOHN}: 47 km => $23.50",
        "Total: 227 km => $113.50",
        "Odometer: 1227 km",
        "Please settle accordingly.",
    ]


def test_settlement_message_without_odometer(participants):
    message = build_settlement_message(_state(last_odometer=None), participants, 1700000000000, **MESSAGE_OPTIONS)

    assert "Odometer" not in message
    assert message.split("\n")[-2] == "Total: 227 km => $113.50"


def test_settlement_message_is_deterministic(participants):
    first = build_settlement_message(_state(), participants, 1700000000000, **MESSAGE_OPTIONS)
    second = build_settlement_message(_state(), participants, 1700000000000, **MESSAGE_OPTIONS)

    assert first == second


def test_format_currency_fallback():
    """Unknown locale falls back to symbol plus two decimals."""
    assert format_currency(12.5, currency="ILS", locale="xx_XX", symbol="₪") == "₪12.50"


def test_format_currency_localized():
    assert format_currency(1234.5, currency="USD", locale="en_US") == "$1,234.50"


def test_format_km():
    assert format_km(180) == "180"
    assert format_km(180.0) == "180"
    assert format_km(12.5) == "12.5"


def test_share_url_encodes_message():
    message = "Total: 227 km => $113.50\nPlease settle accordingly."

    url = build_share_url(message)

    assert url.startswith("https://wa.me/?text=")
    assert "\n" not in url and " " not in url
    assert unquote(url.split("text=", 1)[1]) == message
