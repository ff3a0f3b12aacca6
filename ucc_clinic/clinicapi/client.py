"""Main client for the UCC clinic API."""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from .exceptions import ClinicAPIError, ClinicAuthError, ClinicConnectionError, ClinicDataError
from .models import (
	CAUSE_HTTP_STATUS, CAUSE_NON_JSON, CAUSE_TRANSPORT,
	Announcement, ChronologicalTimeline, ComprehensiveReport, Envelope,
	InventoryItem, MonthlyReport, RequestForm, User,
)

_LOGGER = logging.getLogger(__name__)

PRODUCTION_API_URL = "https://clinic-backend-production-8835.up.railway.app"

DEFAULT_HEADERS = {
	"Accept": "application/json",
}

DEFAULT_TIMEOUT = 30.0

NETWORK_ERROR_MESSAGE = "Network error. Please try again."
NON_JSON_MESSAGE = "Server returned non-JSON response"

# Endpoints
ANNOUNCEMENT_PATH = "/api/announcement"
LOGIN_PATH = "/api/auth/login"
REQUESTS_PATH = "/api/requests"
INVENTORY_ITEMS_PATH = "/api/enhanced-inventory/items"
INVENTORY_CATEGORIES_PATH = "/api/enhanced-inventory/categories"
INVENTORY_EXPIRING_PATH = "/api/enhanced-inventory/expiring"
USERS_PATH = "/api/auth/users"
COMPREHENSIVE_REPORT_PATH = "/api/comprehensive-reports/comprehensive"
MONTHLY_REPORT_PATH = "/api/reporting/monthly"
DISEASE_STATS_PATH = "/api/reporting/diseases"
INVENTORY_STATS_PATH = "/api/reporting/inventory"
TIMELINE_PATH = "/api/chronological/timeline"
EMAIL_CONFIG_PATH = "/api/test/email-config"
EMAIL_CONNECTION_TEST_PATH = "/api/test/email-connection"
REQUEST_STATUS_EMAIL_TEST_PATH = "/api/test/request-status-email"
INVENTORY_EMAIL_TEST_PATH = "/api/test/inventory-email"


def _try_decode_object(text: str) -> Optional[Dict[str, Any]]:
	"""Decode an error body if it is a JSON object, else None."""
	try:
		decoded = json.loads(text)
	except (TypeError, ValueError):
		return None
	return decoded if isinstance(decoded, dict) else None


class ClinicClient:
	"""Client for interacting with the clinic API.

	Every public method returns an ``Envelope``. Transport, HTTP status and
	decoding failures are raised internally and converted into failure
	envelopes here, so callers never see a raw network exception.
	"""

	def __init__(
		self,
		base_url: str = PRODUCTION_API_URL,
		session: Optional[aiohttp.ClientSession] = None,
		timeout: float = DEFAULT_TIMEOUT,
	):
		"""Initialise clinic client.

		Args:
			base_url: API origin prefixed to every relative path
			session: Optional aiohttp session. If None, one is created on enter.
			timeout: Total request timeout in seconds
		"""
		self.base_url = base_url.rstrip("/")
		self._session = session
		self._own_session = session is None
		self._timeout = timeout

	async def __aenter__(self):
		"""Async context manager entry."""
		if self._own_session and self._session is None:
			self._session = aiohttp.ClientSession(
				timeout=aiohttp.ClientTimeout(total=self._timeout)
			)
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb):
		"""Async context manager exit."""
		await self.close()

	async def close(self) -> None:
		if self._own_session and self._session:
			await self._session.close()
			self._session = None

	def url_for(self, path: str) -> str:
		return f"{self.base_url}/{path.lstrip('/')}"

	async def request(
		self,
		path: str,
		method: str = "GET",
		json_body: Optional[Dict[str, Any]] = None,
		params: Optional[Dict[str, Any]] = None,
		fallback_message: str = "Request failed",
	) -> Envelope:
		"""Perform a request and return a parsed envelope.

		Args:
			path: Path relative to the configured base URL
			method: HTTP method
			json_body: Optional JSON body
			params: Optional query parameters; None values are dropped
			fallback_message: Used when a failed envelope carries no message

		Returns:
			Envelope with ``success`` set and either ``data`` or ``message``
		"""
		try:
			status, payload = await self._request_json(path, method, json_body, params)
		except ClinicConnectionError as err:
			_LOGGER.warning(f"{method} {path} unreachable: {err}")
			return Envelope.failure(NETWORK_ERROR_MESSAGE, cause=CAUSE_TRANSPORT)
		except ClinicAPIError as err:
			_LOGGER.warning(f"{method} {path} failed: {err}")
			if err.payload:
				# Keep server-provided message and conflict details
				envelope = Envelope.from_payload(err.payload, status=err.status)
				envelope.success = False
				envelope.cause = CAUSE_HTTP_STATUS
				envelope.message = envelope.message or str(err)
				return envelope
			return Envelope.failure(str(err), cause=CAUSE_HTTP_STATUS, status=err.status)
		except ClinicDataError as err:
			_LOGGER.error(f"{method} {path} returned unusable body: {err}")
			return Envelope.failure(NON_JSON_MESSAGE, cause=CAUSE_NON_JSON)

		envelope = Envelope.from_payload(payload, status=status)
		if not envelope.success:
			_LOGGER.debug(f"{method} {path} unsuccessful: {envelope.message}")
			if not envelope.message:
				envelope.message = fallback_message
		return envelope

	async def _request_json(
		self,
		path: str,
		method: str,
		json_body: Optional[Dict[str, Any]],
		params: Optional[Dict[str, Any]],
	):
		"""Issue the HTTP request and decode the JSON envelope.

		Raises:
			ClinicConnectionError: network unreachable or timed out
			ClinicAuthError: HTTP 401/403
			ClinicAPIError: any other non-2xx status
			ClinicDataError: body is not a JSON object
		"""
		if self._session is None:
			raise ClinicConnectionError("Client not properly initialised")

		url = self.url_for(path)
		query = {k: str(v) for k, v in (params or {}).items() if v is not None and v != ""}
		headers = DEFAULT_HEADERS.copy()
		if json_body is not None:
			headers["Content-Type"] = "application/json"

		_LOGGER.debug(f"{method} {url} params={query}")
		try:
			async with self._session.request(
				method, url, json=json_body, params=query or None, headers=headers
			) as resp:
				try:
					text = await resp.text()
				except UnicodeDecodeError as err:
					raise ClinicDataError(f"Undecodable response body from {path}: {err}") from err
				if resp.status < 200 or resp.status >= 300:
					_LOGGER.debug(f"Error body from {url}: {text[:200]}")
					error_cls = ClinicAuthError if resp.status in (401, 403) else ClinicAPIError
					raise error_cls(
						f"Server error: {resp.status}",
						status=resp.status,
						payload=_try_decode_object(text),
					)

				content_type = resp.headers.get("content-type", "").lower()
				if "json" not in content_type:
					# Some deployments send JSON with a wrong content-type
					stripped = text.strip()
					if not (stripped.startswith("{") or stripped.startswith("[")):
						raise ClinicDataError(f"Non-JSON response ({content_type or 'no content-type'}): {stripped[:200]}")
					_LOGGER.debug(f"Content-type {content_type!r} for {url}, attempting manual JSON parse")

				try:
					payload = json.loads(text)
				except json.JSONDecodeError as err:
					raise ClinicDataError(f"Invalid JSON from {path}: {err}") from err

				if not isinstance(payload, dict):
					raise ClinicDataError(f"Expected JSON object from {path}, got {type(payload).__name__}")
				return resp.status, payload

		except aiohttp.ClientError as err:
			raise ClinicConnectionError(f"Connection error: {err}") from err
		except asyncio.TimeoutError as err:
			raise ClinicConnectionError(f"Timed out requesting {path}") from err

	async def _get_parsed(
		self,
		path: str,
		parser: Callable[[Any], Any],
		params: Optional[Dict[str, Any]] = None,
		fallback_message: str = "Request failed",
	) -> Envelope:
		envelope = await self.request(path, params=params, fallback_message=fallback_message)
		if not envelope.success:
			return envelope
		try:
			return envelope.with_data(parser(envelope.data))
		except (AttributeError, KeyError, TypeError, ValueError) as err:
			_LOGGER.error(f"Failed to parse data from {path}: {err}")
			return Envelope.failure(fallback_message, cause=CAUSE_NON_JSON)

	@staticmethod
	def _parse_list(model) -> Callable[[Any], List[Any]]:
		def parse(data: Any) -> List[Any]:
			if not isinstance(data, list):
				raise TypeError(f"Expected a list, got {type(data).__name__}")
			return [model.from_dict(item) for item in data]
		return parse

	# Announcements

	async def get_announcements(self) -> Envelope:
		return await self._get_parsed(
			ANNOUNCEMENT_PATH, self._parse_list(Announcement),
			fallback_message="Failed to fetch announcements",
		)

	async def create_announcement(self, fields: Dict[str, Any]) -> Envelope:
		return await self.request(
			ANNOUNCEMENT_PATH, "POST", fields, fallback_message="Failed to create announcement"
		)

	async def update_announcement(self, announcement_id: str, fields: Dict[str, Any]) -> Envelope:
		return await self.request(
			f"{ANNOUNCEMENT_PATH}/{announcement_id}", "PUT", fields,
			fallback_message="Failed to update announcement",
		)

	async def delete_announcement(self, announcement_id: str) -> Envelope:
		return await self.request(
			f"{ANNOUNCEMENT_PATH}/{announcement_id}", "DELETE",
			fallback_message="Failed to delete announcement",
		)

	# Authentication

	async def login(self, username: str, password: str) -> Envelope:
		"""Log in; the account arrives under ``user`` rather than ``data``."""
		envelope = await self.request(
			LOGIN_PATH, "POST", {"username": username, "password": password},
			fallback_message="Login failed",
		)
		if not envelope.success:
			return envelope
		user_data = envelope.payload.get("user", envelope.data)
		if not isinstance(user_data, dict):
			_LOGGER.error("Login succeeded without a user record")
			return Envelope.failure("Login failed", cause=CAUSE_NON_JSON)
		return envelope.with_data(User.from_dict(user_data))

	# Medical requests

	async def get_requests(self) -> Envelope:
		return await self._get_parsed(
			REQUESTS_PATH, self._parse_list(RequestForm),
			fallback_message="Failed to fetch requests",
		)

	# Enhanced inventory

	async def get_inventory_items(
		self,
		category: Optional[str] = None,
		brand: Optional[str] = None,
		search: Optional[str] = None,
	) -> Envelope:
		params = {"category": category, "brand": brand, "search": search}
		return await self._get_parsed(
			INVENTORY_ITEMS_PATH, self._parse_list(InventoryItem), params=params,
			fallback_message="Failed to fetch inventory items",
		)

	async def get_inventory_categories(self) -> Envelope:
		def parse(data: Any) -> Dict[str, List[str]]:
			data = data or {}
			return {
				"categories": list(data.get("categories") or []),
				"brands": list(data.get("brands") or []),
			}
		return await self._get_parsed(
			INVENTORY_CATEGORIES_PATH, parse, fallback_message="Failed to fetch categories",
		)

	async def get_expiring_items(self, days_ahead: int = 90) -> Envelope:
		return await self._get_parsed(
			INVENTORY_EXPIRING_PATH, self._parse_list(InventoryItem),
			params={"daysAhead": days_ahead},
			fallback_message="Failed to fetch expiring items",
		)

	async def create_inventory_item(self, fields: Dict[str, Any]) -> Envelope:
		return await self.request(
			INVENTORY_ITEMS_PATH, "POST", fields, fallback_message="Failed to create inventory item"
		)

	async def update_inventory_item(self, item_id: str, fields: Dict[str, Any]) -> Envelope:
		return await self.request(
			f"{INVENTORY_ITEMS_PATH}/{item_id}", "PUT", fields,
			fallback_message="Failed to update inventory item",
		)

	async def delete_inventory_item(self, item_id: str) -> Envelope:
		return await self.request(
			f"{INVENTORY_ITEMS_PATH}/{item_id}", "DELETE",
			fallback_message="Failed to delete inventory item",
		)

	# User accounts

	async def get_users(self) -> Envelope:
		return await self._get_parsed(
			USERS_PATH, self._parse_list(User), fallback_message="Failed to fetch users",
		)

	async def create_user(self, fields: Dict[str, Any]) -> Envelope:
		return await self.request(USERS_PATH, "POST", fields, fallback_message="Failed to create user")

	async def delete_user(self, user_id: str) -> Envelope:
		return await self.request(
			f"{USERS_PATH}/{user_id}", "DELETE", fallback_message="Failed to delete user"
		)

	async def set_user_status(self, user_id: str, is_active: bool) -> Envelope:
		return await self.request(
			f"{USERS_PATH}/{user_id}/status", "PATCH", {"isActive": is_active},
			fallback_message="Failed to update user status",
		)

	# Reports

	async def get_comprehensive_report(self, month: int, year: int) -> Envelope:
		return await self._get_parsed(
			COMPREHENSIVE_REPORT_PATH, ComprehensiveReport.from_dict,
			params={"month": month, "year": year},
			fallback_message="Failed to fetch report",
		)

	async def get_monthly_report(self, month: int, year: int) -> Envelope:
		return await self._get_parsed(
			MONTHLY_REPORT_PATH, MonthlyReport.from_dict,
			params={"month": month, "year": year},
			fallback_message="Failed to fetch report",
		)

	async def get_disease_stats(self) -> Envelope:
		return await self.request(DISEASE_STATS_PATH, fallback_message="Failed to fetch disease stats")

	async def get_inventory_stats(self) -> Envelope:
		return await self.request(INVENTORY_STATS_PATH, fallback_message="Failed to fetch inventory stats")

	async def get_timeline(
		self,
		start_date: str,
		end_date: str,
		resolution: str = "day",
		data_type: str = "combined",
	) -> Envelope:
		params = {
			"dataType": data_type,
			"resolution": resolution,
			"startDate": start_date,
			"endDate": end_date,
		}
		return await self._get_parsed(
			TIMELINE_PATH, ChronologicalTimeline.from_dict, params=params,
			fallback_message="Failed to fetch chronological data",
		)

	# Email diagnostics

	async def get_email_config(self) -> Envelope:
		"""Email settings arrive under ``config``."""
		envelope = await self.request(EMAIL_CONFIG_PATH, fallback_message="Failed to fetch email config")
		if envelope.success or "config" in envelope.payload:
			config = envelope.payload.get("config", envelope.data)
			return Envelope.ok(config, payload=envelope.payload, status=envelope.status)
		return envelope

	async def test_email_connection(self, test_email: str) -> Envelope:
		return await self.request(
			EMAIL_CONNECTION_TEST_PATH, "POST", {"testEmail": test_email},
			fallback_message="Email test failed",
		)

	async def test_request_status_email(self, test_email: str, status: str) -> Envelope:
		return await self.request(
			REQUEST_STATUS_EMAIL_TEST_PATH, "POST", {"testEmail": test_email, "status": status},
			fallback_message="Email test failed",
		)

	async def test_inventory_email(self, test_email: str) -> Envelope:
		return await self.request(
			INVENTORY_EMAIL_TEST_PATH, "POST", {"testEmail": test_email},
			fallback_message="Email test failed",
		)
