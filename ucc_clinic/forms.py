"""Create/update/delete form handling shared by the admin pages."""

import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional

import voluptuous as vol

from .clinicapi.models import CAUSE_VALIDATION, Envelope

_LOGGER = logging.getLogger(__name__)

Submit = Callable[[Dict[str, Any]], Awaitable[Envelope]]
AfterSuccess = Callable[[], Awaitable[Any]]
ErrorFormatter = Callable[[Envelope, Mapping[str, Any]], Optional[str]]


def present(value: Any) -> Any:
	"""Validator: reject missing or blank values, accept anything else."""
	if value is None or (isinstance(value, str) and not value.strip()):
		raise vol.Invalid("required")
	return value


def build_form_schema(required: Iterable[str]) -> vol.Schema:
	"""Presence-only schema; business rules are the server's job."""
	return vol.Schema(
		{vol.Required(name): present for name in required},
		extra=vol.ALLOW_EXTRA,
	)


class FormController:
	"""State and submit flow for one modal form.

	On success the modal closes, values reset to defaults and ``after_success``
	re-fetches the affected collection. On failure the modal stays open with
	the entered values untouched and an error message set. Only one submission
	may be in flight at a time.
	"""

	def __init__(
		self,
		name: str,
		submit: Submit,
		required: Iterable[str] = (),
		defaults: Optional[Mapping[str, Any]] = None,
		after_success: Optional[AfterSuccess] = None,
		error_formatter: Optional[ErrorFormatter] = None,
		fallback_message: str = "Request failed",
		success_message: Optional[str] = None,
		labels: Optional[Mapping[str, str]] = None,
	) -> None:
		self.name = name
		self._submit = submit
		self._required = list(required)
		self._schema = build_form_schema(self._required)
		self._defaults = dict(defaults or {})
		self._after_success = after_success
		self._error_formatter = error_formatter
		self._fallback_message = fallback_message
		self._success_message = success_message
		self._labels = dict(labels or {})
		self.values: Dict[str, Any] = dict(self._defaults)
		self.is_open = False
		self.is_submitting = False
		self.error: Optional[str] = None
		self.success_message: Optional[str] = None
		self.last_result: Optional[Envelope] = None

	@property
	def can_submit(self) -> bool:
		"""Whether the submit control should be enabled."""
		return not self.is_submitting

	def open(self, values: Optional[Mapping[str, Any]] = None) -> None:
		"""Show the form, optionally pre-filled (edit forms)."""
		self.values = dict(self._defaults)
		if values:
			self.values.update(values)
		self.error = None
		self.success_message = None
		self.is_open = True

	def close(self) -> None:
		self.is_open = False
		self.error = None

	def reset(self) -> None:
		self.values = dict(self._defaults)

	def set_field(self, name: str, value: Any) -> None:
		self.values[name] = value

	def update(self, values: Mapping[str, Any]) -> None:
		self.values.update(values)

	def missing_fields(self) -> List[str]:
		try:
			self._schema(self.values)
		except vol.MultipleInvalid as err:
			failed = {str(error.path[0]) for error in err.errors if error.path}
			return [name for name in self._required if name in failed]
		return []

	async def submit(self) -> bool:
		"""Validate and send the form.

		Returns:
			True when the server accepted the mutation
		"""
		if self.is_submitting:
			_LOGGER.debug(f"{self.name}: submit ignored, already in flight")
			return False

		missing = self.missing_fields()
		if missing:
			names = ", ".join(self._labels.get(field, field) for field in missing)
			self.error = f"Please fill in: {names}"
			self.last_result = Envelope.failure(self.error, cause=CAUSE_VALIDATION)
			return False

		self.is_submitting = True
		self.error = None
		self.success_message = None
		try:
			envelope = await self._submit(dict(self.values))
		finally:
			self.is_submitting = False
		self.last_result = envelope

		if not envelope.success:
			self.error = self._describe_failure(envelope)
			_LOGGER.info(f"{self.name}: submission rejected: {self.error}")
			return False

		self.is_open = False
		self.reset()
		self.success_message = self._success_message
		_LOGGER.debug(f"{self.name}: submission accepted")
		if self._after_success:
			await self._after_success()
		return True

	def _describe_failure(self, envelope: Envelope) -> str:
		if self._error_formatter:
			message = self._error_formatter(envelope, self.values)
			if message:
				return message
		return envelope.message or self._fallback_message


class ActionGuard:
	"""Single-flight guard for one-click mutations (delete, toggle, test)."""

	def __init__(self, name: str) -> None:
		self.name = name
		self.in_flight = False
		self.error: Optional[str] = None

	async def run(self, action: Callable[[], Awaitable[Envelope]], fallback_message: str) -> Optional[Envelope]:
		"""Run ``action`` unless another is in flight; None when skipped."""
		if self.in_flight:
			_LOGGER.debug(f"{self.name}: action ignored, already in flight")
			return None
		self.in_flight = True
		self.error = None
		try:
			envelope = await action()
		finally:
			self.in_flight = False
		if not envelope.success:
			self.error = envelope.message or fallback_message
		return envelope
