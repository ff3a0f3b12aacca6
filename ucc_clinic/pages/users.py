"""User management page, available only where the feature flag allows it."""

import logging
from typing import Any, Dict, List, Mapping, Optional

from ..clinicapi.models import CAUSE_HTTP_STATUS, Envelope, User
from ..clinicapi.utils import DATE_STYLE_SHORT, format_date
from ..const import MSG_FEATURE_DISABLED, ROLE_LABELS, ROLE_STUDENT_ASSISTANT
from ..forms import ActionGuard, FormController
from .base import Page

_LOGGER = logging.getLogger(__name__)

USER_FORM_DEFAULTS = {
	"username": "",
	"password": "",
	"role": ROLE_STUDENT_ASSISTANT,
	"fullName": "",
	"email": "",
	"contactNumber": "",
	"studentId": "",
}

USER_LABELS = {"fullName": "Full Name", "username": "Username", "password": "Password"}


def role_label(role: str) -> str:
	return ROLE_LABELS.get(role, role)


def duplicate_user_message(envelope: Envelope, values: Mapping[str, Any]) -> Optional[str]:
	"""Explain which unique field clashed with an existing account."""
	kind = envelope.conflict_type
	if not kind:
		return None
	if kind == "username":
		return f'Username "{values.get("username", "")}" already exists. Please choose a different username.'

	existing = envelope.existing or {}
	name = existing.get("fullName", "")
	role = existing.get("role", "")
	if kind == "fullName":
		return (
			"Duplicate User Detected!\n\n"
			f'A user with the name "{values.get("fullName", "")}" already exists:\n\n'
			f"• Name: {name}\n• Role: {role}\n"
			f"• Student ID: {existing.get('studentId') or 'Not specified'}\n\n"
			"Please verify if this is the same person or use a different name."
		)
	if kind == "studentId":
		return (
			"Duplicate Student ID!\n\n"
			f'Student ID "{values.get("studentId", "")}" is already registered to:\n\n'
			f"• Name: {name}\n• Role: {role}\n• Student ID: {existing.get('studentId', '')}\n\n"
			"Please verify the student ID or contact the existing user."
		)
	if kind == "email":
		return (
			"Duplicate Email!\n\n"
			f'Email "{values.get("email", "")}" is already registered to:\n\n'
			f"• Name: {name}\n• Role: {role}\n• Email: {existing.get('email', '')}\n\n"
			"Please use a different email address."
		)
	if kind == "contactNumber":
		return (
			"Duplicate Contact Number!\n\n"
			f'Contact number "{values.get("contactNumber", "")}" is already registered to:\n\n'
			f"• Name: {name}\n• Role: {role}\n• Contact: {existing.get('contactNumber', '')}\n\n"
			"Please use a different contact number."
		)
	return None


class UserManagementPage(Page):
	"""List, create, delete and (de)activate console accounts.

	With the feature disabled nothing is fetched and every mutation is refused
	locally. A 404 from the list endpoint means the server does not ship the
	feature yet; the page then shows an empty list instead of an error.
	"""

	def __init__(self, client, config, session=None, sleep=None) -> None:
		super().__init__(client, config, session=session, sleep=sleep)
		self.store = self.create_store("users", empty=list)
		self.endpoints_missing = False
		self.create_form = FormController(
			"create-user",
			self._submit_create,
			required=("fullName", "username", "password"),
			defaults=USER_FORM_DEFAULTS,
			after_success=self.async_refresh,
			error_formatter=duplicate_user_message,
			fallback_message="Failed to create user",
			success_message="User created successfully!",
			labels=USER_LABELS,
		)
		self.delete_action = ActionGuard("delete-user")
		self.status_action = ActionGuard("toggle-user-status")
		self.action_message: Optional[str] = None

	@property
	def enabled(self) -> bool:
		return self.features.user_management_enabled

	@property
	def users(self) -> List[User]:
		return self.store.data or []

	@property
	def error(self) -> Optional[str]:
		return self.store.error

	@property
	def create_button_label(self) -> str:
		return "Create New User" if self.enabled else "Feature Not Available"

	def can_delete(self, user: User) -> bool:
		"""The signed-in account cannot delete itself."""
		current = self.session.user if self.session else None
		return current is None or current.id != user.id

	@staticmethod
	def status_label(user: User) -> str:
		return "Active" if user.is_active else "Inactive"

	@staticmethod
	def toggle_label(user: User) -> str:
		return "Deactivate" if user.is_active else "Activate"

	@staticmethod
	def created_label(user: User) -> str:
		return format_date(user.created_at, DATE_STYLE_SHORT)

	async def _async_load(self) -> None:
		await self.async_refresh()

	async def async_refresh(self) -> bool:
		if not self.enabled:
			_LOGGER.debug("User management disabled, not fetching users")
			return False
		return await self.store.refresh(self._fetch_users)

	async def _fetch_users(self) -> Envelope:
		envelope = await self.client.get_users()
		if not envelope.success and envelope.cause == CAUSE_HTTP_STATUS and envelope.status == 404:
			_LOGGER.info("User management endpoints not deployed on this server")
			self.endpoints_missing = True
			return Envelope.ok([], status=404)
		self.endpoints_missing = False
		return envelope

	async def _submit_create(self, values: Dict[str, Any]) -> Envelope:
		if not self.enabled:
			return Envelope.failure(MSG_FEATURE_DISABLED)
		return await self.client.create_user(values)

	async def async_delete(self, user: User) -> bool:
		self.action_message = None
		if not self.enabled:
			self.delete_action.error = MSG_FEATURE_DISABLED
			return False
		envelope = await self.delete_action.run(
			lambda: self.client.delete_user(user.id), "Failed to delete user"
		)
		if envelope is None or not envelope.success:
			return False
		self.action_message = "User deleted successfully!"
		await self.async_refresh()
		return True

	async def async_toggle_status(self, user: User) -> bool:
		if not self.enabled:
			self.status_action.error = MSG_FEATURE_DISABLED
			return False
		envelope = await self.status_action.run(
			lambda: self.client.set_user_status(user.id, not user.is_active),
			"Failed to update user status",
		)
		if envelope is None or not envelope.success:
			return False
		await self.async_refresh()
		return True
