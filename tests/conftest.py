"""Shared fixtures for the console tests."""

import pytest

from helpers import FakeClock, make_config

from ucc_clinic.clinicapi.models import User
from ucc_clinic.config import ConsoleConfig
from ucc_clinic.pages.auth import AuthSession


@pytest.fixture
def clock() -> FakeClock:
	return FakeClock()


@pytest.fixture
def config() -> ConsoleConfig:
	return make_config()


@pytest.fixture
def admin_session() -> AuthSession:
	return AuthSession(User(id="u-admin", username="nurse.joy", role="admin", full_name="Joy Santos"))
