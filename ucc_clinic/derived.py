"""Pure helpers computing display-ready views from fetched entities."""

import calendar
import math
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

from .clinicapi.utils import MONTH_NAMES, parse_datetime

T = TypeVar("T")

KeyFunc = Union[str, Callable[[Any], Any]]

NET_GAIN = "Net Gain"
NET_LOSS = "Net Loss"
BALANCED = "Balanced"


def _field_getter(key: KeyFunc) -> Callable[[Any], Any]:
	"""Read ``key`` from a mapping or an attribute from a record."""
	if callable(key):
		return key

	def getter(record: Any) -> Any:
		if isinstance(record, Mapping):
			return record.get(key)
		return getattr(record, key, None)
	return getter


def top_n_by_recency(
	items: Iterable[T],
	n: int,
	key: KeyFunc = "created_at",
	id_key: KeyFunc = "id",
) -> List[T]:
	"""Return the ``n`` most recent records, newest first.

	Timestamps are normalised with ``parse_datetime`` so strings, datetimes and
	epoch values compare correctly. Equal timestamps are ordered by id
	ascending; records without a timestamp sort last.
	"""
	if n <= 0:
		return []
	get_stamp = _field_getter(key)
	get_id = _field_getter(id_key)

	dated: List[Tuple[datetime, str, T]] = []
	undated: List[Tuple[str, T]] = []
	for item in items:
		stamp = parse_datetime(get_stamp(item))
		ident = str(get_id(item) or "")
		if stamp is None:
			undated.append((ident, item))
		else:
			dated.append((stamp, ident, item))

	# Two stable passes: id ascending, then timestamp descending
	dated.sort(key=lambda entry: entry[1])
	dated.sort(key=lambda entry: entry[0], reverse=True)
	undated.sort(key=lambda entry: entry[0])

	ordered = [entry[2] for entry in dated] + [entry[1] for entry in undated]
	return ordered[:n]


def percentage_of_total(count: float, total: float) -> int:
	"""``round(100 * count / total)`` rounding halves up; 0 when total is 0."""
	if not total:
		return 0
	return int(math.floor(100 * count / total + 0.5))


def group_counts(items: Iterable[Any], key: KeyFunc) -> Dict[Any, int]:
	"""Count records per category value.

	Only categories that occur are present; records missing the field are
	skipped.
	"""
	getter = _field_getter(key)
	counts: Dict[Any, int] = {}
	for item in items:
		value = getter(item)
		if value is None or value == "":
			continue
		counts[value] = counts.get(value, 0) + 1
	return counts


def percentage_breakdown(counts: Mapping[Any, float]) -> Dict[Any, int]:
	total = sum(counts.values())
	return {category: percentage_of_total(count, total) for category, count in counts.items()}


def filter_by_status(items: Iterable[T], status: Optional[str], key: KeyFunc = "status") -> List[T]:
	"""Client-side status filter; an empty status keeps everything."""
	if not status:
		return list(items)
	getter = _field_getter(key)
	return [item for item in items if getter(item) == status]


def top_entries(counts: Mapping[Any, float], n: int) -> List[Tuple[Any, float]]:
	"""Largest counts first, ties in first-seen order."""
	return sorted(counts.items(), key=lambda entry: entry[1], reverse=True)[:max(n, 0)]


def sorted_trend(trends: Mapping[str, float], n: int) -> List[Tuple[str, float]]:
	"""Order trend buckets by their numeric key and keep the first ``n``."""
	def numeric(entry: Tuple[str, float]) -> float:
		try:
			return float(entry[0])
		except (TypeError, ValueError):
			return math.inf
	return sorted(trends.items(), key=numeric)[:max(n, 0)]


def timeline_totals(entries: Sequence[Any]) -> Dict[str, int]:
	"""Sum cases, consumption and new registrations over timeline buckets."""
	totals = {"cases": 0, "consumed": 0, "new_registrations": 0}
	for entry in entries:
		medical = _section(entry, "medical")
		inventory = _section(entry, "inventory")
		registrations = _section(entry, "registrations")
		totals["cases"] += medical.get("cases", 0) or 0
		totals["consumed"] += inventory.get("consumed", 0) or 0
		totals["new_registrations"] += registrations.get("new", 0) or 0
	return totals


def _section(entry: Any, name: str) -> Mapping[str, Any]:
	section = entry.get(name) if isinstance(entry, Mapping) else getattr(entry, name, None)
	return section or {}


def net_change(added: float, consumed: float) -> Tuple[float, str]:
	difference = added - consumed
	if difference > 0:
		return difference, NET_GAIN
	if difference < 0:
		return difference, NET_LOSS
	return difference, BALANCED


def cycle_index(current: int, length: int, step: int) -> int:
	"""Move ``step`` slides from ``current``, wrapping at both ends."""
	if length <= 0:
		return 0
	return (current + step) % length


def month_name(month: int) -> str:
	if not 1 <= month <= 12:
		raise ValueError(f"Month out of range: {month}")
	return MONTH_NAMES[month - 1]


def days_in_month(year: int, month: int) -> int:
	return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> Tuple[str, str]:
	"""First and last ISO dates of a month."""
	return f"{year}-{month:02d}-01", f"{year}-{month:02d}-{days_in_month(year, month):02d}"


def year_options(current_year: int, count: int) -> List[int]:
	"""The current year followed by the ``count - 1`` previous ones."""
	return [current_year - offset for offset in range(count)]
