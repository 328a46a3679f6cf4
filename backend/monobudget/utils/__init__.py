from .currency import currency_alpha_code, format_amount
from .timestamp import from_epoch_seconds, to_epoch_seconds, utcnow

__all__ = ["currency_alpha_code", "format_amount", "from_epoch_seconds", "to_epoch_seconds", "utcnow"]
