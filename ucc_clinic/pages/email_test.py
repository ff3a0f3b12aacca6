"""Email diagnostics page."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..clinicapi.models import CAUSE_TRANSPORT, Envelope
from ..clinicapi.utils import DATE_STYLE_DATETIME, format_date
from ..const import (
	MSG_EMAIL_ADDRESS_REQUIRED,
	MSG_EMAIL_NETWORK_ERROR,
	MSG_FEATURE_DISABLED,
	STATUS_APPROVED,
	STATUS_REJECTED,
)
from ..forms import ActionGuard
from .base import Page

_LOGGER = logging.getLogger(__name__)

TEST_BASIC = "Basic Email Test"
TEST_INVENTORY = "Inventory Expiration Email"


def request_status_test_label(status: str) -> str:
	return f"Request Status Email ({status})"


@dataclass
class EmailTestResult:
	"""Outcome of one diagnostic send, newest shown first."""
	test: str
	success: bool
	message: Optional[str]
	timestamp: datetime
	details: Dict[str, Any] = field(default_factory=dict)

	@property
	def timestamp_label(self) -> str:
		return format_date(self.timestamp, DATE_STYLE_DATETIME)


class EmailTestPage(Page):
	"""Send test emails and keep a log of the outcomes.

	Only one test runs at a time. Transport failures are logged as
	"Network error occurred" rather than the generic network message.
	"""

	def __init__(
		self,
		client,
		config,
		session=None,
		sleep=None,
		now: Optional[Callable[[], datetime]] = None,
	) -> None:
		super().__init__(client, config, session=session, sleep=sleep)
		self._now = now or (lambda: datetime.now(timezone.utc))
		self.config_store = self.create_store("email-config")
		self.test_email = ""
		self.results: List[EmailTestResult] = []
		self.guard = ActionGuard("email-test")
		self.error: Optional[str] = None

	@property
	def enabled(self) -> bool:
		return self.features.email_testing_enabled

	@property
	def email_config(self) -> Optional[Dict[str, Any]]:
		return self.config_store.data

	@property
	def is_loading(self) -> bool:
		return self.guard.in_flight

	@property
	def button_label_suffix(self) -> Optional[str]:
		return "Sending..." if self.is_loading else None

	async def _async_load(self) -> None:
		if not self.enabled:
			_LOGGER.debug("Email testing disabled, not fetching email config")
			return
		await self.config_store.refresh(self.client.get_email_config)

	def set_test_email(self, address: str) -> None:
		self.test_email = address

	def clear_results(self) -> None:
		self.results = []

	async def async_test_basic(self) -> Optional[EmailTestResult]:
		return await self._run_test(TEST_BASIC, lambda: self.client.test_email_connection(self.test_email))

	async def async_test_request_status(self, status: str) -> Optional[EmailTestResult]:
		if status not in (STATUS_APPROVED, STATUS_REJECTED):
			raise ValueError(f"Unsupported request status: {status}")
		return await self._run_test(
			request_status_test_label(status),
			lambda: self.client.test_request_status_email(self.test_email, status),
		)

	async def async_test_inventory(self) -> Optional[EmailTestResult]:
		return await self._run_test(TEST_INVENTORY, lambda: self.client.test_inventory_email(self.test_email))

	async def _run_test(self, label: str, send: Callable[[], Awaitable[Envelope]]) -> Optional[EmailTestResult]:
		self.error = None
		if not self.enabled:
			self.error = MSG_FEATURE_DISABLED
			return None
		if not self.test_email.strip():
			self.error = MSG_EMAIL_ADDRESS_REQUIRED
			return None

		envelope = await self.guard.run(send, "Email test failed")
		if envelope is None:
			return None

		message = MSG_EMAIL_NETWORK_ERROR if envelope.cause == CAUSE_TRANSPORT else envelope.message
		result = EmailTestResult(
			test=label,
			success=envelope.success,
			message=message,
			timestamp=self._now(),
			details=dict(envelope.payload),
		)
		self.results.insert(0, result)
		_LOGGER.info(f"{label} to {self.test_email}: {'ok' if result.success else result.message}")
		return result
