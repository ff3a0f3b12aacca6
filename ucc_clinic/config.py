"""Console configuration and feature flags."""

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, Mapping, Optional

import voluptuous as vol
from dotenv import load_dotenv

from .clinicapi.client import PRODUCTION_API_URL
from .clinicapi.exceptions import ClinicConfigError
from .const import (
	CONF_API_URL,
	CONF_ENV,
	CONF_FEATURE_EMAIL_TESTING,
	CONF_FEATURE_USER_MANAGEMENT,
	CONF_LEGACY_API_URL,
	CONF_POLL_INTERVAL,
	CONF_REQUEST_TIMEOUT,
	DEFAULT_POLL_INTERVAL,
	DEFAULT_REQUEST_TIMEOUT,
	ENV_DEVELOPMENT,
	ENV_PRODUCTION,
)

_LOGGER = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _env_bool(value: Any) -> bool:
	if isinstance(value, bool):
		return value
	text = str(value).strip().lower()
	if text in _TRUE_VALUES:
		return True
	if text in _FALSE_VALUES:
		return False
	raise vol.Invalid(f"expected a boolean, got {value!r}")


def _http_url(value: Any) -> str:
	text = str(value).strip()
	if not text.startswith(("http://", "https://")):
		raise vol.Invalid(f"expected an http(s) URL, got {value!r}")
	return text.rstrip("/")


CONFIG_SCHEMA = vol.Schema(
	{
		vol.Required(CONF_ENV, default=ENV_PRODUCTION): vol.All(
			str, vol.Lower, vol.In([ENV_DEVELOPMENT, ENV_PRODUCTION])
		),
		vol.Optional(CONF_API_URL): _http_url,
		vol.Optional(CONF_FEATURE_USER_MANAGEMENT): _env_bool,
		vol.Optional(CONF_FEATURE_EMAIL_TESTING, default=True): _env_bool,
		vol.Optional(CONF_POLL_INTERVAL, default=DEFAULT_POLL_INTERVAL.total_seconds()): vol.All(
			vol.Coerce(float), vol.Range(min=1)
		),
		vol.Optional(CONF_REQUEST_TIMEOUT, default=DEFAULT_REQUEST_TIMEOUT): vol.All(
			vol.Coerce(float), vol.Range(min=1)
		),
	},
	extra=vol.REMOVE_EXTRA,
)


@dataclass(frozen=True)
class FeatureFlags:
	"""Toggles controlling which console features are available."""
	user_management_enabled: bool = False
	email_testing_enabled: bool = True


@dataclass(frozen=True)
class ConsoleConfig:
	"""Explicit configuration handed to every page at construction."""
	api_url: str = PRODUCTION_API_URL
	environment: str = ENV_PRODUCTION
	features: FeatureFlags = field(default_factory=FeatureFlags)
	poll_interval: timedelta = DEFAULT_POLL_INTERVAL
	request_timeout: float = DEFAULT_REQUEST_TIMEOUT

	@property
	def is_development(self) -> bool:
		return self.environment == ENV_DEVELOPMENT

	@classmethod
	def from_mapping(cls, values: Mapping[str, Any]) -> "ConsoleConfig":
		"""Validate raw settings (usually ``os.environ``) into a config.

		Raises:
			ClinicConfigError: a value failed validation
		"""
		relevant: Dict[str, Any] = {}
		for marker in CONFIG_SCHEMA.schema:
			key = str(marker)
			if values.get(key) not in (None, ""):
				relevant[key] = values[key]
		if CONF_API_URL not in relevant and values.get(CONF_LEGACY_API_URL):
			relevant[CONF_API_URL] = values[CONF_LEGACY_API_URL]

		try:
			validated = CONFIG_SCHEMA(relevant)
		except vol.Invalid as err:
			raise ClinicConfigError(f"Invalid console configuration: {err}") from err

		environment = validated[CONF_ENV]
		# User management is only on by default for local development
		user_management = validated.get(
			CONF_FEATURE_USER_MANAGEMENT, environment == ENV_DEVELOPMENT
		)
		return cls(
			api_url=validated.get(CONF_API_URL, PRODUCTION_API_URL),
			environment=environment,
			features=FeatureFlags(
				user_management_enabled=user_management,
				email_testing_enabled=validated[CONF_FEATURE_EMAIL_TESTING],
			),
			poll_interval=timedelta(seconds=validated[CONF_POLL_INTERVAL]),
			request_timeout=validated[CONF_REQUEST_TIMEOUT],
		)


def load_config(dotenv_path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> ConsoleConfig:
	"""Build the console configuration from the environment.

	A ``.env`` file is loaded first when present; variables already set in the
	process environment win over it.
	"""
	if environ is None:
		load_dotenv(dotenv_path)
		environ = os.environ
	config = ConsoleConfig.from_mapping(environ)
	_LOGGER.debug(
		f"Loaded {config.environment} config for {config.api_url} "
		f"(user_management={config.features.user_management_enabled}, "
		f"email_testing={config.features.email_testing_enabled})"
	)
	return config
