"""Monthly reporting dashboard and comprehensive reports."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from ..clinicapi.models import ChronologicalTimeline, ComprehensiveReport, MonthlyReport, TimelineEntry, TopDisease
from ..clinicapi.utils import format_currency
from ..const import (
	GROUP_BY_OPTIONS,
	SAMPLE_STUDENTS_LIMIT,
	TAB_CHRONOLOGICAL,
	TAB_DISEASES,
	TAB_INVENTORY,
	TAB_MEDICAL,
	TAB_OVERVIEW,
	TAB_REGISTRATIONS,
	TIMELINE_PREVIEW_LIMIT,
	TOP_CONSUMED_LIMIT,
	TOP_DISEASES_LIMIT,
	TREND_LIMIT,
	YEAR_OPTIONS_COUNT,
)
from ..derived import month_bounds, month_name, net_change, sorted_trend, timeline_totals, year_options
from .base import Page

_LOGGER = logging.getLogger(__name__)

DASHBOARD_TABS = (TAB_OVERVIEW, TAB_MEDICAL, TAB_INVENTORY, TAB_REGISTRATIONS, TAB_CHRONOLOGICAL)
COMPREHENSIVE_TABS = (TAB_OVERVIEW, TAB_DISEASES, TAB_INVENTORY)


def _check_month(month: int) -> int:
	if not 1 <= month <= 12:
		raise ValueError(f"Month out of range: {month}")
	return month


class _PeriodPage(Page):
	"""Page keyed by a selected month and year, defaulting to today."""

	tabs: Tuple[str, ...] = (TAB_OVERVIEW,)

	def __init__(self, client, config, session=None, sleep=None, today: Optional[date] = None) -> None:
		super().__init__(client, config, session=session, sleep=sleep)
		self.today = today or date.today()
		self.month = self.today.month
		self.year = self.today.year
		self.active_tab = TAB_OVERVIEW

	@property
	def period_label(self) -> str:
		return f"{month_name(self.month)} {self.year}"

	def set_tab(self, tab: str) -> None:
		if tab not in self.tabs:
			raise ValueError(f"Unknown tab: {tab}")
		self.active_tab = tab

	async def async_set_period(self, month: Optional[int] = None, year: Optional[int] = None) -> None:
		"""Select another month and/or year and re-fetch."""
		if month is not None:
			self.month = _check_month(month)
		if year is not None:
			self.year = year
		await self._async_load()


class ReportingDashboard(_PeriodPage):
	"""Monthly report plus the chronological timeline for the same month.

	Both are re-fetched whenever the month, year or group-by changes. Disease
	and inventory statistics are only loaded when asked for.
	"""

	tabs = DASHBOARD_TABS

	def __init__(self, client, config, session=None, sleep=None, today: Optional[date] = None) -> None:
		super().__init__(client, config, session=session, sleep=sleep, today=today)
		self.group_by = GROUP_BY_OPTIONS[0]
		self.report_store = self.create_store("monthly-report")
		self.timeline_store = self.create_store("chronological-timeline")
		self.disease_stats_store = self.create_store("disease-stats")
		self.inventory_stats_store = self.create_store("inventory-stats")

	@property
	def report(self) -> Optional[MonthlyReport]:
		return self.report_store.data

	@property
	def timeline(self) -> Optional[ChronologicalTimeline]:
		return self.timeline_store.data

	@property
	def is_loading(self) -> bool:
		return self.report_store.is_loading

	@property
	def date_range(self) -> Tuple[str, str]:
		return month_bounds(self.year, self.month)

	async def _async_load(self) -> None:
		await self.async_refresh_report()
		await self.async_refresh_timeline()

	async def async_refresh_report(self) -> bool:
		month, year = self.month, self.year
		return await self.report_store.refresh(lambda: self.client.get_monthly_report(month, year))

	async def async_refresh_timeline(self) -> bool:
		start, end = self.date_range
		resolution = self.group_by
		return await self.timeline_store.refresh(
			lambda: self.client.get_timeline(start, end, resolution=resolution)
		)

	async def async_set_group_by(self, group_by: str) -> None:
		if group_by not in GROUP_BY_OPTIONS:
			raise ValueError(f"Unknown grouping: {group_by}")
		self.group_by = group_by
		await self._async_load()

	async def async_load_disease_stats(self) -> Any:
		await self.disease_stats_store.refresh(self.client.get_disease_stats)
		return self.disease_stats_store.data

	async def async_load_inventory_stats(self) -> Any:
		await self.inventory_stats_store.refresh(self.client.get_inventory_stats)
		return self.inventory_stats_store.data

	# Derived overview

	@property
	def top_diseases(self) -> List[TopDisease]:
		return self.report.top_diseases[:TOP_DISEASES_LIMIT] if self.report else []

	@property
	def top_consumed_items(self) -> List[Dict[str, Any]]:
		return self.report.top_consumed_items[:TOP_CONSUMED_LIMIT] if self.report else []

	@property
	def most_consumed_label(self) -> str:
		items = self.top_consumed_items
		return items[0].get("itemName", "N/A") if items else "N/A"

	@property
	def net_inventory_change(self) -> Tuple[float, str]:
		summary = self.report.summary if self.report else {}
		return net_change(summary.get("totalInventoryAdded", 0) or 0, summary.get("totalInventoryConsumed", 0) or 0)

	@property
	def inventory_value_label(self) -> str:
		summary = self.report.summary if self.report else {}
		return format_currency(summary.get("totalInventoryValue", 0) or 0)

	@property
	def registration_trends(self) -> List[Tuple[str, float]]:
		if not self.report:
			return []
		return sorted_trend(self.report.registrations.get("registrationTrends") or {}, TREND_LIMIT)

	@property
	def timeline_totals(self) -> Dict[str, int]:
		return timeline_totals(self.timeline.timeline if self.timeline else [])

	@property
	def timeline_preview(self) -> List[TimelineEntry]:
		return self.timeline.timeline[:TIMELINE_PREVIEW_LIMIT] if self.timeline else []


class ComprehensiveReportsPage(_PeriodPage):
	"""Disease and inventory statistics for one month, generated on demand."""

	tabs = COMPREHENSIVE_TABS

	def __init__(self, client, config, session=None, sleep=None, today: Optional[date] = None) -> None:
		super().__init__(client, config, session=session, sleep=sleep, today=today)
		self.store = self.create_store("comprehensive-report")

	@property
	def report(self) -> Optional[ComprehensiveReport]:
		return self.store.data

	@property
	def is_loading(self) -> bool:
		return self.store.is_loading

	@property
	def generate_label(self) -> str:
		return "Loading..." if self.is_loading else "Generate Report"

	@property
	def year_options(self) -> List[int]:
		return year_options(self.today.year, YEAR_OPTIONS_COUNT)

	async def _async_load(self) -> None:
		await self.async_generate()

	async def async_generate(self) -> bool:
		month, year = self.month, self.year
		return await self.store.refresh(lambda: self.client.get_comprehensive_report(month, year))

	@property
	def top_diseases(self) -> List[TopDisease]:
		return self.report.top_diseases[:TOP_DISEASES_LIMIT] if self.report else []

	def sample_students(self, disease: str) -> List[Dict[str, Any]]:
		if not self.report:
			return []
		return self.report.students_for(disease)[:SAMPLE_STUDENTS_LIMIT]

	def more_students_count(self, disease: str) -> int:
		if not self.report:
			return 0
		return max(len(self.report.students_for(disease)) - SAMPLE_STUDENTS_LIMIT, 0)

	@property
	def inventory_value_label(self) -> str:
		summary = self.report.summary if self.report else {}
		return format_currency(summary.get("totalInventoryValue", 0) or 0)
