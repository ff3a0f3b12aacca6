"""Test doubles shared by the console tests."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

from ucc_clinic.config import ConsoleConfig, FeatureFlags


async def settle(rounds: int = 10) -> None:
	"""Let ready tasks run until they block again."""
	for _ in range(rounds):
		await asyncio.sleep(0)


class FakeClock:
	"""Deterministic stand-in for ``asyncio.sleep``.

	Sleepers wake only when ``advance`` moves the clock past their deadline,
	in deadline order.
	"""

	def __init__(self) -> None:
		self.now = 0.0
		self._waiters = []
		self._seq = 0

	async def sleep(self, delay: float) -> None:
		future = asyncio.get_running_loop().create_future()
		self._seq += 1
		self._waiters.append((self.now + delay, self._seq, future))
		await future

	@property
	def sleepers(self) -> int:
		return len([w for w in self._waiters if not w[2].done()])

	async def advance(self, seconds: float) -> None:
		target = self.now + seconds
		while True:
			await settle()
			self._waiters = [w for w in self._waiters if not w[2].done()]
			due = sorted((w for w in self._waiters if w[0] <= target), key=lambda w: (w[0], w[1]))
			if not due:
				break
			waiter = due[0]
			self._waiters.remove(waiter)
			self.now = waiter[0]
			waiter[2].set_result(None)
		self.now = target
		await settle()


def make_config(user_management: bool = True, email_testing: bool = True, poll_seconds: float = 30) -> ConsoleConfig:
	return ConsoleConfig(
		api_url="http://clinic.test",
		environment="development",
		features=FeatureFlags(
			user_management_enabled=user_management,
			email_testing_enabled=email_testing,
		),
		poll_interval=timedelta(seconds=poll_seconds),
	)


def make_client(**methods) -> MagicMock:
	"""Mock client whose named coroutine methods return the given envelopes."""
	client = MagicMock()
	for name, result in methods.items():
		if isinstance(result, list):
			setattr(client, name, AsyncMock(side_effect=result))
		else:
			setattr(client, name, AsyncMock(return_value=result))
	return client


