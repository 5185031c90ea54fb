"""Shared test constants."""

AMIT = "Amit"
JOHN = "John"

ACCESS_CODES = {"1337": AMIT, "1234": JOHN}

# Deterministic settlement message formatting
MESSAGE_OPTIONS = {"currency": "USD", "locale": "en_US", "tz_name": "UTC"}
