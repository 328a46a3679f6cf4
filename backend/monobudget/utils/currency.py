"""Currency code and amount formatting utilities."""
from typing import Optional

# ISO 4217 numeric -> alphabetic, for the currencies Monobank reports
_ISO_NUMERIC = {
    980: "UAH",
    840: "USD",
    978: "EUR",
    826: "GBP",
    985: "PLN",
    203: "CZK",
    348: "HUF",
    756: "CHF",
    949: "TRY",
    208: "DKK",
    578: "NOK",
    752: "SEK",
    124: "CAD",
    36: "AUD",
    392: "JPY",
    156: "CNY",
    946: "RON",
    975: "BGN",
    981: "GEL",
    933: "BYN",
    498: "MDL",
    784: "AED",
    376: "ILS",
    398: "KZT",
}

# Currencies without a minor unit
_ZERO_DECIMALS = {"JPY"}


def currency_alpha_code(numeric_code: int) -> str:
    """ISO alphabetic code for a numeric one; unknown codes are returned as digits."""
    return _ISO_NUMERIC.get(numeric_code, str(numeric_code))


def format_amount(amount: int, currency: Optional[str]) -> str:
    """
    Format a minor-units amount for display.

    Example: format_amount(-9500, "UAH") -> "-95.00 UAH"
    """
    code = currency or ""
    if code in _ZERO_DECIMALS:
        text = f"{amount}"
    else:
        sign = "-" if amount < 0 else ""
        major, minor = divmod(abs(amount), 100)
        text = f"{sign}{major}.{minor:02d}"
    return f"{text} {code}".strip()
