"""Typed reads over an untyped :class:`~fineract_flow.variable_bag.VariableBag`.

Every getter takes a ``default``. Leaving it at :data:`REQUIRED` makes the
key mandatory: an absent or ``None`` value raises ``ValueError`` naming the
key, which the error handler later turns into an argument error.

Numbers are strict and dates are lenient:

* a numeric string which cannot be parsed raises (for required keys),
* a date string which cannot be parsed is handed back unchanged so that the
  core-banking API gets the chance to interpret it.
"""
import logging as logging_library
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from fineract_flow.variable_bag import VariableBag

logging = logging_library.getLogger(__name__)


class _Required:
    def __repr__(self) -> str:
        return "REQUIRED"


REQUIRED = _Required()

DATE_INPUT_FORMATS = ("%d %b %Y", "%d %B %Y")

_JAVA_TOKENS = {
    "yyyy": "%Y",
    "yy": "%y",
    "MMMM": "%B",
    "MMM": "%b",
    "MM": "%m",
    "dd": "%d",
    "HH": "%H",
    "mm": "%M",
    "ss": "%S",
}
_JAVA_TOKEN_RE = re.compile("|".join(_JAVA_TOKENS))


def _raw(bag: VariableBag, key: str, default: Any) -> Any:
    value = bag.get_variable(key)
    if value is None:
        if default is REQUIRED:
            raise ValueError(f"Required variable '{key}' is missing")
        return default
    return value


def _to_decimal(key: str, value: Any) -> Decimal:
    number = None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        number = Decimal(str(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip().replace(",", ""))
        except InvalidOperation:
            pass
    # NaN and Infinity parse but are never a valid amount or id
    if number is not None and number.is_finite():
        return number
    raise ValueError(f"Invalid number format for variable '{key}': {value}")


def _numeric(bag: VariableBag, key: str, default: Any) -> Optional[Decimal]:
    value = _raw(bag, key, default)
    if value is default:
        return None
    try:
        return _to_decimal(key, value)
    except ValueError:
        if default is REQUIRED:
            raise
        logging.warning("Ignoring malformed value %r of variable '%s', using %r", value, key, default)
        return None


def get_string(bag: VariableBag, key: str, default: Any = REQUIRED) -> Optional[str]:
    value = _raw(bag, key, default)
    if value is default:
        return value
    return str(value)


def get_decimal(bag: VariableBag, key: str, default: Any = REQUIRED) -> Optional[Decimal]:
    """Read a monetary or rate value. ``"1,000.50"`` becomes ``Decimal("1000.50")``."""
    number = _numeric(bag, key, default)
    return default if number is None else number


def get_long(bag: VariableBag, key: str, default: Any = REQUIRED) -> Optional[int]:
    number = _numeric(bag, key, default)
    if number is None:
        return default
    if number != number.to_integral_value():
        if default is REQUIRED:
            raise ValueError(f"Invalid number format for variable '{key}': {bag.get_variable(key)}")
        logging.warning("Variable '%s' is not a whole number, using %r", key, default)
        return default
    return int(number)


get_int = get_long


def get_bool(bag: VariableBag, key: str, default: Any = REQUIRED) -> Optional[bool]:
    value = _raw(bag, key, default)
    if value is default or isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    if isinstance(value, int):
        return bool(value)
    if default is REQUIRED:
        raise ValueError(f"Invalid boolean value for variable '{key}': {value}")
    logging.warning("Ignoring malformed boolean %r of variable '%s'", value, key)
    return default


def parse_date_string(text: str) -> Optional[date]:
    """Parse ``dd MMM yyyy``, ``dd MMMM yyyy`` or ISO-8601, in that order."""
    text = text.strip()
    for date_format in DATE_INPUT_FORMATS:
        try:
            return datetime.strptime(text, date_format).date()
        except ValueError:
            continue
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def get_date(bag: VariableBag, key: str, default: Any = REQUIRED) -> Union[date, str, None]:
    value = _raw(bag, key, default)
    if value is default:
        return value
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_date_string(str(value))
    if parsed is None:
        logging.warning("Could not parse date variable '%s' with value %r, passing it on as is", key, value)
        return str(value)
    return parsed


def to_strftime(pattern: str) -> str:
    """Translate a Fineract (Java) date pattern such as ``dd MMMM yyyy``."""
    return _JAVA_TOKEN_RE.sub(lambda match: _JAVA_TOKENS[match.group(0)], pattern)


def format_date(value: Union[date, str, None], date_format: str) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, date):
        return value.strftime(to_strftime(date_format))
    return str(value)


def today(date_format: str = "yyyy-MM-dd") -> str:
    return format_date(date.today(), date_format)
