"""Signed-in user holder and the login page."""

import logging
from typing import Optional

from ..clinicapi.models import Envelope, User
from ..const import (
	MSG_LOGIN_FAILED,
	ROLE_LANDING_ROUTES,
	ROUTE_ADMIN_HOME,
	ROUTE_LANDING,
)
from ..forms import FormController
from .base import Page

_LOGGER = logging.getLogger(__name__)


def landing_route_for(role: Optional[str]) -> str:
	"""Where a user lands after signing in."""
	return ROLE_LANDING_ROUTES.get(role or "", ROUTE_ADMIN_HOME)


class AuthSession:
	"""Holds the signed-in account for the lifetime of the console.

	Authorisation is enforced by the server; the role here only decides which
	parts of the UI are offered.
	"""

	def __init__(self, user: Optional[User] = None) -> None:
		self.user = user

	@property
	def is_authenticated(self) -> bool:
		return self.user is not None

	def has_role(self, *roles: str) -> bool:
		return self.user is not None and self.user.role in roles

	def login(self, user: User) -> str:
		self.user = user
		_LOGGER.info(f"Signed in as {user.username} ({user.role})")
		return landing_route_for(user.role)

	def logout(self) -> str:
		if self.user:
			_LOGGER.info(f"Signed out {self.user.username}")
		self.user = None
		return ROUTE_LANDING


class LoginPage(Page):
	"""Username/password form posting to the login endpoint."""

	requires_auth = False

	def __init__(self, client, config, session: AuthSession, sleep=None) -> None:
		super().__init__(client, config, session=session, sleep=sleep)
		self.form = FormController(
			"login",
			self._submit,
			required=("username", "password"),
			defaults={"username": "", "password": ""},
			fallback_message=MSG_LOGIN_FAILED,
			labels={"username": "Username", "password": "Password"},
		)
		self.form.open()

	@property
	def is_loading(self) -> bool:
		return self.form.is_submitting

	@property
	def error(self) -> Optional[str]:
		return self.form.error

	async def _submit(self, values) -> Envelope:
		envelope = await self.client.login(values["username"], values["password"])
		if envelope.success:
			self.redirect = self.session.login(envelope.data)
		return envelope

	async def async_login(self, username: str, password: str) -> bool:
		self.form.update({"username": username, "password": password})
		return await self.form.submit()
