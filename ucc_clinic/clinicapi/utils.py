"""Parsing and display helpers for clinic API values."""

import logging
import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

_LOGGER = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"

DEFAULT_CURRENCY = "PHP"

CURRENCY_SYMBOLS = {
	"PHP": "₱",
	"USD": "$",
	"EUR": "€",
}

# Fixed en-US month names; display output must not depend on the host locale
MONTH_NAMES = [
	"January", "February", "March", "April", "May", "June",
	"July", "August", "September", "October", "November", "December",
]
SHORT_MONTH_NAMES = [name[:3] for name in MONTH_NAMES]

DATE_STYLE_LONG = "long"
DATE_STYLE_SHORT = "short"
DATE_STYLE_DATETIME = "datetime"
DATE_STYLE_ISO = "iso"

_DATE_FORMATS = [
	"%Y-%m-%dT%H:%M:%S.%f%z",
	"%Y-%m-%dT%H:%M:%S%z",
	"%Y-%m-%dT%H:%M:%S.%f",
	"%Y-%m-%dT%H:%M:%S",
	"%Y-%m-%d %H:%M:%S",
	"%Y-%m-%d",
	"%m/%d/%Y",
]

_DISPLAY_DATETIME_RE = re.compile(
	r"^(?P<month>[A-Za-z]+) (?P<day>\d{1,2}), (?P<year>\d{4})"
	r"(?:,? (?:at )?(?P<hour>\d{1,2}):(?P<minute>\d{2}) (?P<ampm>AM|PM))?$"
)


def parse_datetime(value: Any) -> Optional[datetime]:
	"""Normalise an API timestamp into a timezone-aware datetime.

	Accepts ISO strings (with or without ``Z``), ``datetime``/``date`` objects,
	epoch milliseconds and Firestore-style ``{"_seconds": ...}`` mappings.
	Naive values are treated as UTC.

	Returns:
		datetime or None when the value is empty or unparseable
	"""
	if value is None or value == "":
		return None

	if isinstance(value, datetime):
		parsed = value
	elif isinstance(value, date):
		parsed = datetime(value.year, value.month, value.day)
	elif isinstance(value, bool):
		return None
	elif isinstance(value, (int, float)):
		try:
			parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
		except (OverflowError, OSError, ValueError):
			_LOGGER.warning(f"Failed to parse epoch timestamp: {value!r}")
			return None
	elif isinstance(value, dict):
		seconds = value.get("_seconds", value.get("seconds"))
		if seconds is None:
			_LOGGER.warning(f"Unrecognised timestamp mapping: {value!r}")
			return None
		nanos = value.get("_nanoseconds", value.get("nanoseconds", 0)) or 0
		parsed = datetime.fromtimestamp(float(seconds) + nanos / 1e9, tz=timezone.utc)
	elif isinstance(value, str):
		parsed = _parse_datetime_string(value.strip())
		if parsed is None:
			return None
	else:
		_LOGGER.warning(f"Unsupported timestamp type: {type(value).__name__}")
		return None

	if parsed.tzinfo is None:
		parsed = parsed.replace(tzinfo=timezone.utc)
	return parsed


def _parse_datetime_string(text: str) -> Optional[datetime]:
	"""Try the known API string formats in turn."""
	if not text:
		return None
	candidate = text[:-1] + "+0000" if text.endswith("Z") else text
	for fmt in _DATE_FORMATS:
		try:
			return datetime.strptime(candidate, fmt)
		except ValueError:
			continue
	try:
		return datetime.fromisoformat(text)
	except ValueError:
		pass

	_LOGGER.warning(f"Failed to parse date: {text}")
	return None


def format_date(value: Any, style: str = DATE_STYLE_LONG) -> str:
	"""Render a timestamp the way the console displays it.

	Styles:
		long: ``January 5, 2025``
		short: ``Jan 5, 2025``
		datetime: ``January 5, 2025 at 03:04 PM``
		iso: ``2025-01-05`` (form input value)
	"""
	parsed = parse_datetime(value)
	if parsed is None:
		return NOT_AVAILABLE

	if style == DATE_STYLE_ISO:
		return parsed.strftime("%Y-%m-%d")
	if style == DATE_STYLE_SHORT:
		return f"{SHORT_MONTH_NAMES[parsed.month - 1]} {parsed.day}, {parsed.year}"

	text = f"{MONTH_NAMES[parsed.month - 1]} {parsed.day}, {parsed.year}"
	if style == DATE_STYLE_DATETIME:
		hour = parsed.hour % 12 or 12
		ampm = "AM" if parsed.hour < 12 else "PM"
		text = f"{text} at {hour:02d}:{parsed.minute:02d} {ampm}"
	return text


def parse_display_date(text: str) -> Optional[datetime]:
	"""Inverse of ``format_date`` for the long, short and datetime styles."""
	match = _DISPLAY_DATETIME_RE.match(text.strip()) if text else None
	if not match:
		return None

	month_text = match.group("month")
	if month_text in MONTH_NAMES:
		month = MONTH_NAMES.index(month_text) + 1
	elif month_text in SHORT_MONTH_NAMES:
		month = SHORT_MONTH_NAMES.index(month_text) + 1
	else:
		return None

	hour = minute = 0
	if match.group("hour"):
		hour = int(match.group("hour")) % 12
		if match.group("ampm") == "PM":
			hour += 12
		minute = int(match.group("minute"))

	return datetime(
		int(match.group("year")), month, int(match.group("day")), hour, minute,
		tzinfo=timezone.utc,
	)


def format_currency(amount: Any, currency: str = DEFAULT_CURRENCY) -> str:
	"""Format an amount with a fixed symbol, thousands separators and 2 decimals."""
	try:
		value = Decimal(str(amount if amount is not None else 0))
	except InvalidOperation:
		_LOGGER.warning(f"Invalid currency amount: {amount!r}")
		value = Decimal(0)

	value = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
	symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
	sign = "-" if value < 0 else ""
	return f"{sign}{symbol}{abs(value):,.2f}"


def parse_currency(text: str, currency: str = DEFAULT_CURRENCY) -> Decimal:
	"""Inverse of ``format_currency``."""
	symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
	cleaned = text.strip()
	negative = cleaned.startswith("-")
	cleaned = cleaned.lstrip("-").replace(symbol, "", 1).replace(",", "").strip()
	try:
		value = Decimal(cleaned)
	except InvalidOperation as err:
		raise ValueError(f"Not a currency amount: {text!r}") from err
	return -value if negative else value


def to_int(value: Any, default: int = 0) -> int:
	"""Coerce loosely typed numeric API fields."""
	if value is None or value == "":
		return default
	try:
		return int(float(value))
	except (TypeError, ValueError):
		return default


def to_float(value: Any, default: float = 0.0) -> float:
	if value is None or value == "":
		return default
	try:
		return float(value)
	except (TypeError, ValueError):
		return default
