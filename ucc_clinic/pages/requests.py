"""Medical request views: pending notifications and the full request list."""

import logging
from typing import Dict, List, Optional

from ..clinicapi.models import RequestForm
from ..clinicapi.utils import DATE_STYLE_DATETIME, format_date
from ..const import ROUTE_REQUESTED_FORM, STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED
from ..derived import filter_by_status, group_counts, percentage_breakdown, top_n_by_recency
from .base import Page

_LOGGER = logging.getLogger(__name__)

REQUEST_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)


def _latest_first(requests: List[RequestForm]) -> List[RequestForm]:
	return top_n_by_recency(requests, len(requests))


class NotificationsPage(Page):
	"""Pending requests awaiting review."""

	def __init__(self, client, config, session=None, sleep=None) -> None:
		super().__init__(client, config, session=session, sleep=sleep)
		self.store = self.create_store("requests", empty=list, transform=_latest_first)

	@property
	def requests(self) -> List[RequestForm]:
		return self.store.data or []

	@property
	def pending_requests(self) -> List[RequestForm]:
		return filter_by_status(self.requests, STATUS_PENDING)

	@property
	def pending_count(self) -> int:
		return len(self.pending_requests)

	@property
	def total_requests(self) -> int:
		return len(self.requests)

	@property
	def is_loading(self) -> bool:
		return self.store.is_loading

	@property
	def last_updated_label(self) -> str:
		return format_date(self.store.last_updated, DATE_STYLE_DATETIME)

	def submitted_label(self, request: RequestForm) -> str:
		return format_date(request.created_at, DATE_STYLE_DATETIME)

	def view_request(self) -> str:
		self.redirect = ROUTE_REQUESTED_FORM
		return self.redirect

	async def _async_load(self) -> None:
		await self.async_refresh()

	async def async_refresh(self) -> bool:
		return await self.store.refresh(self.client.get_requests)


class RequestedFormsPage(Page):
	"""Every submitted request with a status filter and breakdown."""

	def __init__(self, client, config, session=None, sleep=None) -> None:
		super().__init__(client, config, session=session, sleep=sleep)
		self.store = self.create_store("requests", empty=list, transform=_latest_first)
		self.status_filter: Optional[str] = None

	@property
	def requests(self) -> List[RequestForm]:
		return self.store.data or []

	@property
	def visible_requests(self) -> List[RequestForm]:
		return filter_by_status(self.requests, self.status_filter)

	@property
	def error(self) -> Optional[str]:
		return self.store.error

	def set_status_filter(self, status: Optional[str]) -> None:
		if status and status not in REQUEST_STATUSES:
			raise ValueError(f"Unknown request status: {status}")
		self.status_filter = status or None

	@property
	def status_counts(self) -> Dict[str, int]:
		return group_counts(self.requests, "status")

	@property
	def status_percentages(self) -> Dict[str, int]:
		return percentage_breakdown(self.status_counts)

	async def _async_load(self) -> None:
		await self.async_refresh()

	async def async_refresh(self) -> bool:
		return await self.store.refresh(self.client.get_requests)
