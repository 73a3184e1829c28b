import functools
import json
import logging
import math
from decimal import Decimal, getcontext

from stellarstream.config import LOG_LEVEL

# Constants
STROOP_DECIMALS = 7  # one stroop, the smallest unit of a Stellar asset
MIN_DURATION_SECONDS = 60


# Conversion utilities
def to_number(value):
    """Converts a JSON value to a finite number. Returns None if conversion is not possible."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return value if math.isfinite(value) else None
        except OverflowError:
            return None
    if isinstance(value, str) and value.strip() != "":
        try:
            parsed = float(value)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def to_amount(value) -> Decimal:
    """Converts a number to a Decimal amount without picking up binary float noise"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def amount_precision(amount: Decimal) -> int:
    """Decimal digits needed to carry an amount exactly down to one stroop"""
    exponent = min(amount.as_tuple().exponent, -STROOP_DECIMALS)
    return max(getcontext().prec, amount.adjusted() - exponent + 2)


def to_stroops(amount: Decimal) -> int:
    """Whole stroops in an amount, rounded down. Needs a context of amount_precision digits."""
    return int(amount.scaleb(STROOP_DECIMALS))


def from_stroops(stroops: int) -> Decimal:
    return Decimal(stroops).scaleb(-STROOP_DECIMALS)


def amount_to_json(amount: Decimal):
    """Renders an amount as a JSON number, integral amounts as int"""
    exponent = amount.as_tuple().exponent
    if exponent >= 0 or not any(amount.as_tuple().digits[exponent:]):
        return int(amount)
    return float(amount)


# Decorators
def synchronized(func):
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return func(self, *args, **kwargs)

    return wrapper


def apply(decorator):
    def class_decorator(cls):
        for attr_name, attr_value in list(cls.__dict__.items()):
            if attr_name.startswith("_"):
                continue
            if callable(attr_value):
                setattr(cls, attr_name, decorator(attr_value))
        return cls

    return class_decorator


# Logging Configuration
class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_entry = {
            "message": record.getMessage(),
            "level": record.levelname,
            "timestamp": record.created,
        }
        if hasattr(record, "extra"):
            log_entry.update(record.extra)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


logger = logging.getLogger("stellarstream")
logger.setLevel(LOG_LEVEL)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
