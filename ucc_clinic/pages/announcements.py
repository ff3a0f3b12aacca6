"""Announcement slideshow and announcement administration."""

import logging
from typing import List, Optional

from ..clinicapi.models import Announcement, Envelope
from ..clinicapi.utils import DATE_STYLE_DATETIME, format_date
from ..const import DEFAULT_SLIDE_INTERVAL, SLIDESHOW_SIZE
from ..derived import cycle_index, top_n_by_recency
from ..forms import ActionGuard, FormController
from .base import Page

_LOGGER = logging.getLogger(__name__)

ANNOUNCEMENT_DEFAULTS = {"title": "", "description": ""}


def _latest_first(items: List[Announcement]) -> List[Announcement]:
	return top_n_by_recency(items, len(items))


class AnnouncementSlideshow(Page):
	"""Public carousel of the five newest announcements."""

	requires_auth = False

	def __init__(self, client, config, session=None, sleep=None) -> None:
		super().__init__(client, config, session=session, sleep=sleep)
		self.store = self.create_store(
			"announcements",
			empty=list,
			transform=lambda items: top_n_by_recency(items, SLIDESHOW_SIZE),
		)
		self.store.add_listener(self._clamp_index)
		self.current_index = 0
		self.is_paused = False
		self.rotation = self.create_poll("announcement-rotation", self._auto_advance, DEFAULT_SLIDE_INTERVAL)

	@property
	def announcements(self) -> List[Announcement]:
		return self.store.data or []

	@property
	def is_loading(self) -> bool:
		return self.store.is_loading

	@property
	def error(self) -> Optional[str]:
		return self.store.error

	@property
	def is_empty(self) -> bool:
		return not self.is_loading and not self.error and not self.announcements

	@property
	def current(self) -> Optional[Announcement]:
		if not self.announcements:
			return None
		return self.announcements[self.current_index]

	@property
	def counter_label(self) -> str:
		return f"{self.current_index + 1} of {len(self.announcements)} announcements"

	@property
	def formatted_date(self) -> str:
		current = self.current
		return format_date(current.created_at if current else None, DATE_STYLE_DATETIME)

	async def _async_load(self) -> None:
		await self.async_refresh()

	async def async_refresh(self) -> bool:
		return await self.store.refresh(self.client.get_announcements)

	def _clamp_index(self) -> None:
		if self.current_index >= len(self.announcements):
			self.current_index = 0

	def next(self) -> int:
		self.current_index = cycle_index(self.current_index, len(self.announcements), 1)
		return self.current_index

	def previous(self) -> int:
		self.current_index = cycle_index(self.current_index, len(self.announcements), -1)
		return self.current_index

	def go_to(self, index: int) -> int:
		if not 0 <= index < len(self.announcements):
			raise IndexError(f"No slide {index}")
		self.current_index = index
		return index

	def pause(self) -> None:
		self.is_paused = True

	def resume(self) -> None:
		self.is_paused = False

	async def _auto_advance(self) -> None:
		if self.is_paused or len(self.announcements) <= 1:
			return
		self.next()


class AnnouncementsAdminPage(Page):
	"""List, create, edit and delete announcements."""

	def __init__(self, client, config, session=None, sleep=None) -> None:
		super().__init__(client, config, session=session, sleep=sleep)
		self.store = self.create_store("announcements", empty=list, transform=_latest_first)
		self.create_form = FormController(
			"create-announcement",
			self.client.create_announcement,
			required=("title", "description"),
			defaults=ANNOUNCEMENT_DEFAULTS,
			after_success=self.async_refresh,
			fallback_message="Failed to create announcement",
			success_message="Announcement created successfully!",
		)
		self.edit_form = FormController(
			"edit-announcement",
			self._submit_edit,
			required=("title", "description"),
			defaults=ANNOUNCEMENT_DEFAULTS,
			after_success=self.async_refresh,
			fallback_message="Failed to update announcement",
			success_message="Announcement updated successfully!",
		)
		self.delete_action = ActionGuard("delete-announcement")
		self.selected: Optional[Announcement] = None

	@property
	def announcements(self) -> List[Announcement]:
		return self.store.data or []

	async def _async_load(self) -> None:
		await self.async_refresh()

	async def async_refresh(self) -> bool:
		return await self.store.refresh(self.client.get_announcements)

	def open_edit(self, announcement: Announcement) -> None:
		self.selected = announcement
		self.edit_form.open({"title": announcement.title, "description": announcement.description})

	async def _submit_edit(self, values) -> Envelope:
		if self.selected is None:
			return Envelope.failure("No announcement selected")
		return await self.client.update_announcement(self.selected.id, values)

	async def async_delete(self, announcement: Announcement) -> bool:
		envelope = await self.delete_action.run(
			lambda: self.client.delete_announcement(announcement.id),
			"Failed to delete announcement",
		)
		if envelope is None or not envelope.success:
			return False
		await self.async_refresh()
		return True
