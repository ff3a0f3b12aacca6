"""Admin sidebar and top bar."""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..const import (
	ROLE_LABELS,
	ROUTE_ADMIN_HOME,
	ROUTE_ANNOUNCEMENT,
	ROUTE_COMPREHENSIVE_REPORTS,
	ROUTE_ENHANCED_INVENTORY,
	ROUTE_MONTHLY_REPORT,
	ROUTE_NOTIFICATIONS,
	ROUTE_REGISTRATION,
	ROUTE_REPORTING,
	ROUTE_REQUESTED_FORM,
	ROUTE_USER_MANAGEMENT,
	STATUS_PENDING,
)
from ..derived import filter_by_status
from .base import Page

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class NavItem:
	label: str
	route: str
	shows_pending_badge: bool = False


NAV_ITEMS = (
	NavItem("Dashboard", ROUTE_ADMIN_HOME),
	NavItem("Enhanced Inventory", ROUTE_ENHANCED_INVENTORY),
	NavItem("Student Record", ROUTE_REGISTRATION),
	NavItem("Notifications", ROUTE_NOTIFICATIONS, shows_pending_badge=True),
	NavItem("User Management", ROUTE_USER_MANAGEMENT),
	NavItem("Announcements", ROUTE_ANNOUNCEMENT),
	NavItem("Requested Form", ROUTE_REQUESTED_FORM),
	NavItem("Monthly Report", ROUTE_MONTHLY_REPORT),
	NavItem("Reporting Dashboard", ROUTE_REPORTING),
	NavItem("Comprehensive Reports", ROUTE_COMPREHENSIVE_REPORTS),
)


def _pending_count(requests) -> int:
	return len(filter_by_status(requests, STATUS_PENDING))


class AdminShell(Page):
	"""Navigation chrome wrapping every admin page.

	The pending-request badge is loaded on mount and refreshed in the
	background every poll interval. A failed refresh keeps the last count.
	"""

	def __init__(self, client, config, session=None, sleep=None, active_route: str = ROUTE_ADMIN_HOME) -> None:
		super().__init__(client, config, session=session, sleep=sleep)
		self.active_route = active_route
		self.sidebar_open = False
		self.pending = self.create_store("pending-count", empty=int, transform=_pending_count)
		self.pending_poll = self.create_poll("pending-count", self._poll_pending)

	@property
	def nav_items(self) -> List[NavItem]:
		items = list(NAV_ITEMS)
		if not self.features.user_management_enabled:
			items = [item for item in items if item.route != ROUTE_USER_MANAGEMENT]
		return items

	@property
	def pending_count(self) -> int:
		return self.pending.data or 0

	def badge_for(self, item: NavItem) -> Optional[int]:
		if item.shows_pending_badge and self.pending_count > 0:
			return self.pending_count
		return None

	def is_active(self, item: NavItem) -> bool:
		return item.route == self.active_route

	def navigate(self, route: str) -> str:
		"""Select a nav entry; closes the sidebar as on small screens."""
		self.active_route = route
		self.sidebar_open = False
		return route

	def open_sidebar(self) -> None:
		self.sidebar_open = True

	def close_sidebar(self) -> None:
		self.sidebar_open = False

	def toggle_sidebar(self) -> None:
		self.sidebar_open = not self.sidebar_open

	@property
	def user_label(self) -> str:
		user = self.session.user if self.session else None
		if user is None:
			return "Admin"
		return user.username or "Admin"

	@property
	def role_label(self) -> str:
		user = self.session.user if self.session else None
		if user is None:
			return "Administrator"
		return ROLE_LABELS.get(user.role, user.role)

	async def _async_load(self) -> None:
		await self.pending.refresh(self.client.get_requests)

	async def _poll_pending(self) -> None:
		await self.pending.refresh(self.client.get_requests, background=True)

	async def async_logout(self) -> str:
		await self.async_unmount()
		self.redirect = self.session.logout()
		return self.redirect
