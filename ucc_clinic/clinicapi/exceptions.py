"""Custom exceptions for the clinic API client."""

from typing import Any, Dict, Optional


class ClinicError(Exception):
	"""Base exception for clinic console errors."""
	pass


class ClinicAPIError(ClinicError):
	"""API request failed with a non-success HTTP status."""

	def __init__(self, message: str, status: int = 0, payload: Optional[Dict[str, Any]] = None):
		super().__init__(message)
		self.status = status
		self.payload = payload


class ClinicAuthError(ClinicAPIError):
	"""Request rejected as unauthenticated or forbidden."""
	pass


class ClinicConnectionError(ClinicError):
	"""Connection to the clinic API failed."""
	pass


class ClinicDataError(ClinicError):
	"""Response body was not the expected JSON envelope."""
	pass


class ClinicConfigError(ClinicError):
	"""Console configuration is invalid."""
	pass
