"""Per-page view state with last-request-wins commits."""

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar

from .clinicapi.exceptions import ClinicError
from .clinicapi.models import CAUSE_TRANSPORT, Envelope
from .const import STALE_AFTER_FAILURES

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

STATE_IDLE = "idle"
STATE_LOADING = "loading"
STATE_SUCCESS = "success"
STATE_ERROR = "error"

Fetcher = Callable[[], Awaitable[Envelope]]


class ViewStateStore(Generic[T]):
	"""Holds one fetched collection and its loading/error flags.

	Every request is issued a token from a monotonically increasing sequence.
	Only the result carrying the most recently issued token commits; results of
	superseded requests, and anything resolving after ``close()``, are dropped.

	Background refreshes (poll ticks) never touch status or error: a failure
	keeps the last good data and is only logged and counted.
	"""

	def __init__(
		self,
		name: str,
		empty: Optional[Callable[[], T]] = None,
		transform: Optional[Callable[[Any], T]] = None,
		stale_after: int = STALE_AFTER_FAILURES,
	) -> None:
		self.name = name
		self._empty = empty
		self._transform = transform
		self._stale_after = stale_after
		self.status = STATE_IDLE
		self.data: Optional[T] = empty() if empty else None
		self.error: Optional[str] = None
		self.error_cause: Optional[str] = None
		self.last_updated: Optional[datetime] = None
		self.background_failures = 0
		self._latest_token = 0
		self._foreground_token: Optional[int] = None
		self._closed = False
		self._listeners: List[Callable[[], None]] = []

	@property
	def is_loading(self) -> bool:
		return self.status == STATE_LOADING

	@property
	def has_error(self) -> bool:
		return self.status == STATE_ERROR

	@property
	def is_closed(self) -> bool:
		return self._closed

	@property
	def is_stale(self) -> bool:
		"""Repeated background failures mean the shown data may be out of date."""
		return self.background_failures >= self._stale_after

	@property
	def latest_token(self) -> int:
		return self._latest_token

	def add_listener(self, listener: Callable[[], None]) -> Callable[[], None]:
		"""Register a change callback; returns a function that removes it."""
		self._listeners.append(listener)

		def remove_listener() -> None:
			if listener in self._listeners:
				self._listeners.remove(listener)
		return remove_listener

	def _notify(self) -> None:
		for listener in list(self._listeners):
			try:
				listener()
			except Exception:  # pylint: disable=broad-except
				_LOGGER.exception(f"Listener for {self.name} failed")

	def begin(self, background: bool = False) -> int:
		"""Issue a new request token; foreground requests enter ``loading``."""
		self._latest_token += 1
		token = self._latest_token
		if not background:
			self._foreground_token = token
			self.status = STATE_LOADING
			self.error = None
			self.error_cause = None
			self._notify()
		return token

	def commit(self, token: int, envelope: Envelope, background: bool = False) -> bool:
		"""Apply a result if it belongs to the latest request.

		Returns:
			True if the result changed the store
		"""
		if self._closed:
			_LOGGER.debug(f"{self.name}: discarding result {token} after close")
			return False
		if token != self._latest_token:
			_LOGGER.debug(f"{self.name}: discarding stale result {token} (latest {self._latest_token})")
			return False

		if token == self._foreground_token:
			self._foreground_token = None

		if envelope.success:
			try:
				data = self._transform(envelope.data) if self._transform else envelope.data
			except (AttributeError, KeyError, TypeError, ValueError) as err:
				_LOGGER.error(f"{self.name}: failed to derive view data: {err}")
				envelope = Envelope.failure(f"Failed to process {self.name}")
			else:
				self.data = data
				self.status = STATE_SUCCESS
				self.error = None
				self.error_cause = None
				self.background_failures = 0
				self.last_updated = datetime.now(timezone.utc)
				self._notify()
				return True

		if background:
			self.background_failures += 1
			level = logging.WARNING if self.is_stale else logging.DEBUG
			_LOGGER.log(
				level,
				f"{self.name}: background refresh failed ({self.background_failures} in a row): {envelope.message}",
			)
			return False

		if envelope.cause == CAUSE_TRANSPORT:
			_LOGGER.warning(f"{self.name}: network failure: {envelope.message}")
		else:
			_LOGGER.info(f"{self.name}: request failed: {envelope.message}")
		self.status = STATE_ERROR
		self.error = envelope.message
		self.error_cause = envelope.cause
		self.data = self._empty() if self._empty else None
		self._notify()
		return True

	async def refresh(self, fetcher: Fetcher, background: bool = False) -> bool:
		"""Run one fetch through the store.

		A background refresh is skipped while a foreground request is in
		flight, so a poll tick never supersedes a user-triggered load.
		"""
		if self._closed:
			return False
		if background and self._foreground_token is not None:
			_LOGGER.debug(f"{self.name}: skipping background refresh, foreground request in flight")
			return False

		token = self.begin(background=background)
		try:
			envelope = await fetcher()
		except ClinicError as err:
			envelope = Envelope.failure(str(err))
		except Exception:
			# Leave the store usable, then propagate
			self.commit(token, Envelope.failure(f"Failed to load {self.name}"), background=background)
			raise
		finally:
			if self._foreground_token == token:
				self._foreground_token = None
		return self.commit(token, envelope, background=background)

	def close(self) -> None:
		"""Stop accepting results; called when the owning view unmounts."""
		self._closed = True
		self._listeners.clear()
