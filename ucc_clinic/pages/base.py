"""Mount/unmount lifecycle shared by every console page."""

import logging
from datetime import timedelta
from typing import Any, Callable, List, Optional, TYPE_CHECKING, Union

from ..clinicapi.client import ClinicClient
from ..config import ConsoleConfig
from ..const import ROUTE_LANDING
from ..polling import PollingController, Sleep, Tick
from ..store import ViewStateStore

if TYPE_CHECKING:
	from .auth import AuthSession

_LOGGER = logging.getLogger(__name__)


class Page:
	"""Base class for console pages.

	A page instance represents one mounted view. It owns its stores and polls;
	``async_unmount`` stops every poll and closes every store so results that
	arrive afterwards are discarded. Use it as an async context manager to get
	that teardown even when the caller fails.
	"""

	requires_auth = True

	def __init__(
		self,
		client: ClinicClient,
		config: ConsoleConfig,
		session: Optional["AuthSession"] = None,
		sleep: Optional[Sleep] = None,
	) -> None:
		self.client = client
		self.config = config
		self.session = session
		self._sleep = sleep
		self._stores: List[ViewStateStore] = []
		self._polls: List[PollingController] = []
		self.mounted = False
		self.redirect: Optional[str] = None

	@property
	def features(self):
		return self.config.features

	def create_store(
		self,
		name: str,
		empty: Optional[Callable[[], Any]] = None,
		transform: Optional[Callable[[Any], Any]] = None,
	) -> ViewStateStore:
		store: ViewStateStore = ViewStateStore(name, empty=empty, transform=transform)
		self._stores.append(store)
		return store

	def create_poll(self, name: str, tick: Tick, interval: Union[timedelta, float, None] = None) -> PollingController:
		"""Register a poll that starts after mount and stops on unmount."""
		poll = PollingController(
			name, tick, interval if interval is not None else self.config.poll_interval, sleep=self._sleep
		)
		self._polls.append(poll)
		if self.mounted:
			poll.start()
		return poll

	async def async_mount(self) -> None:
		if self.mounted:
			return
		if self.requires_auth and (self.session is None or not self.session.is_authenticated):
			_LOGGER.debug(f"{type(self).__name__}: no signed-in user, redirecting")
			self.redirect = ROUTE_LANDING
			return
		self.mounted = True
		await self._async_load()
		if not self.mounted:
			# Unmounted while the initial load was in flight
			return
		for poll in self._polls:
			poll.start()

	async def async_unmount(self) -> None:
		self.mounted = False
		for poll in self._polls:
			await poll.stop()
		for store in self._stores:
			store.close()

	async def _async_load(self) -> None:
		"""Initial fetches; overridden by pages."""

	async def __aenter__(self):
		await self.async_mount()
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb):
		await self.async_unmount()
