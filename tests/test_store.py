#!/usr/bin/env python3
"""View-state store: last-request-wins, teardown and background refreshes."""

import asyncio

from ucc_clinic.clinicapi.client import NETWORK_ERROR_MESSAGE
from ucc_clinic.clinicapi.exceptions import ClinicConnectionError
from ucc_clinic.clinicapi.models import CAUSE_TRANSPORT, Envelope
from ucc_clinic.store import STATE_ERROR, STATE_IDLE, STATE_LOADING, STATE_SUCCESS, ViewStateStore


async def _race(resolve_first_request_first: bool):
	loop = asyncio.get_running_loop()
	store = ViewStateStore("items", empty=list)
	first, second = loop.create_future(), loop.create_future()

	task_a = asyncio.ensure_future(store.refresh(lambda: first))
	await asyncio.sleep(0)
	task_b = asyncio.ensure_future(store.refresh(lambda: second))
	await asyncio.sleep(0)
	assert store.status == STATE_LOADING

	if resolve_first_request_first:
		first.set_result(Envelope.ok(["from A"]))
		await asyncio.sleep(0)
		second.set_result(Envelope.ok(["from B"]))
	else:
		second.set_result(Envelope.ok(["from B"]))
		await asyncio.sleep(0)
		first.set_result(Envelope.ok(["from A"]))

	results = await asyncio.gather(task_a, task_b)
	return store, results


def test_later_request_wins_when_it_resolves_last():
	store, results = asyncio.run(_race(resolve_first_request_first=True))
	assert store.data == ["from B"]
	assert store.status == STATE_SUCCESS
	assert results == [False, True]


def test_later_request_wins_when_it_resolves_first():
	store, results = asyncio.run(_race(resolve_first_request_first=False))
	assert store.data == ["from B"]
	assert store.status == STATE_SUCCESS
	assert results == [False, True]


def test_results_after_close_are_discarded():
	async def scenario():
		store = ViewStateStore("items", empty=list)
		pending = asyncio.get_running_loop().create_future()
		task = asyncio.ensure_future(store.refresh(lambda: pending))
		await asyncio.sleep(0)
		store.close()
		pending.set_result(Envelope.ok(["late"]))
		changed = await task
		return store, changed

	store, changed = asyncio.run(scenario())
	assert changed is False
	assert store.data == []
	assert store.is_closed


def test_foreground_failure_sets_error_and_empties_data():
	async def scenario():
		store = ViewStateStore("announcements", empty=list)

		async def good():
			return Envelope.ok(["a", "b"])

		async def bad():
			return Envelope.failure("Failed to fetch announcements")

		await store.refresh(good)
		await store.refresh(bad)
		return store

	store = asyncio.run(scenario())
	assert store.status == STATE_ERROR
	assert store.error == "Failed to fetch announcements"
	assert store.data == []


def test_background_failures_keep_data_and_mark_stale():
	async def scenario():
		store = ViewStateStore("pending", empty=int, stale_after=3)

		async def good():
			return Envelope.ok(4)

		async def unreachable():
			return Envelope.failure(NETWORK_ERROR_MESSAGE, cause=CAUSE_TRANSPORT)

		await store.refresh(good)
		snapshots = []
		for _ in range(3):
			await store.refresh(unreachable, background=True)
			snapshots.append((store.data, store.status, store.error, store.is_stale))
		await store.refresh(good, background=True)
		return store, snapshots

	store, snapshots = asyncio.run(scenario())
	assert snapshots == [
		(4, STATE_SUCCESS, None, False),
		(4, STATE_SUCCESS, None, False),
		(4, STATE_SUCCESS, None, True),
	]
	assert store.background_failures == 0
	assert not store.is_stale


def test_background_refresh_skipped_while_foreground_in_flight():
	async def scenario():
		store = ViewStateStore("requests", empty=list)
		pending = asyncio.get_running_loop().create_future()
		calls = []

		async def background():
			calls.append("background")
			return Envelope.ok(["poll"])

		task = asyncio.ensure_future(store.refresh(lambda: pending))
		await asyncio.sleep(0)
		skipped = await store.refresh(background, background=True)
		pending.set_result(Envelope.ok(["user"]))
		await task
		return store, skipped, calls

	store, skipped, calls = asyncio.run(scenario())
	assert skipped is False
	assert calls == []
	assert store.data == ["user"]


def test_transform_applies_and_listeners_fire():
	async def scenario():
		store = ViewStateStore("counts", empty=list, transform=lambda rows: sorted(rows))
		seen = []
		remove = store.add_listener(lambda: seen.append(store.status))

		async def fetch():
			return Envelope.ok([3, 1, 2])

		await store.refresh(fetch)
		remove()
		await store.refresh(fetch)
		return store, seen

	store, seen = asyncio.run(scenario())
	assert store.data == [1, 2, 3]
	assert seen == [STATE_LOADING, STATE_SUCCESS]


def test_raised_client_errors_become_failures():
	async def scenario():
		store = ViewStateStore("items", empty=list)

		async def broken():
			raise ClinicConnectionError("Client not properly initialised")

		await store.refresh(broken)
		return store

	store = asyncio.run(scenario())
	assert store.has_error
	assert store.error == "Client not properly initialised"


def test_unexpected_fetch_error_propagates_without_wedging_the_store():
	async def scenario():
		store = ViewStateStore("items", empty=list)

		async def crashing():
			raise RuntimeError("decoder blew up")

		async def good():
			return Envelope.ok(["fresh"])

		try:
			await store.refresh(crashing)
		except RuntimeError as err:
			raised = str(err)
		else:
			raised = None
		status_after_crash = store.status
		polled = await store.refresh(good, background=True)
		return store, raised, status_after_crash, polled

	store, raised, status_after_crash, polled = asyncio.run(scenario())
	assert raised == "decoder blew up"
	assert status_after_crash == STATE_ERROR
	assert polled is True
	assert store.data == ["fresh"]


def test_new_store_is_idle():
	store = ViewStateStore("items", empty=list)
	assert store.status == STATE_IDLE
	assert store.data == []
	assert store.last_updated is None
