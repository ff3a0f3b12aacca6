#!/usr/bin/env python3
"""Form submission flow and single-flight guards."""

import asyncio
from unittest.mock import AsyncMock

from ucc_clinic.clinicapi.models import CAUSE_VALIDATION, Envelope
from ucc_clinic.forms import ActionGuard, FormController, build_form_schema
from ucc_clinic.pages.users import duplicate_user_message


def test_schema_requires_presence_only():
	schema = build_form_schema(["title", "description"])
	assert schema({"title": "Hi", "description": "x", "extra": 1})["extra"] == 1


def test_missing_fields_block_submission_and_keep_values():
	submit = AsyncMock(return_value=Envelope.ok())
	form = FormController(
		"announcement", submit, required=("title", "description"),
		defaults={"title": "", "description": ""},
		labels={"title": "Title", "description": "Description"},
	)
	form.open({"title": "Clinic closed", "description": "   "})

	accepted = asyncio.run(form.submit())

	assert accepted is False
	assert form.error == "Please fill in: Description"
	assert form.last_result.cause == CAUSE_VALIDATION
	assert form.values["title"] == "Clinic closed"
	assert form.is_open
	submit.assert_not_called()


def test_success_closes_resets_and_refetches():
	submit = AsyncMock(return_value=Envelope.ok({"id": "n1"}))
	refetch = AsyncMock()
	form = FormController(
		"announcement", submit, required=("title",),
		defaults={"title": ""}, after_success=refetch,
		success_message="Announcement created successfully!",
	)
	form.open({"title": "Blood drive"})

	accepted = asyncio.run(form.submit())

	assert accepted is True
	submit.assert_awaited_once_with({"title": "Blood drive"})
	refetch.assert_awaited_once()
	assert not form.is_open
	assert form.values == {"title": ""}
	assert form.success_message == "Announcement created successfully!"


def test_double_submit_only_sends_once():
	async def scenario():
		release = asyncio.get_running_loop().create_future()
		calls = []

		async def submit(values):
			calls.append(values)
			await release
			return Envelope.ok()

		form = FormController("user", submit, required=("username",))
		form.open({"username": "mia"})
		first = asyncio.ensure_future(form.submit())
		await asyncio.sleep(0)
		assert form.is_submitting
		assert not form.can_submit
		second = await form.submit()
		release.set_result(None)
		return await first, second, calls, form

	first, second, calls, form = asyncio.run(scenario())
	assert first is True
	assert second is False
	assert len(calls) == 1
	assert not form.is_submitting


def test_duplicate_username_message_and_values_intact():
	submit = AsyncMock(return_value=Envelope.failure("Username already exists", conflict_type="username"))
	values = {"username": "sa01", "password": "pw", "fullName": "Mia Reyes"}
	form = FormController(
		"create-user", submit, required=("username", "password", "fullName"),
		error_formatter=duplicate_user_message, fallback_message="Failed to create user",
	)
	form.open(values)

	accepted = asyncio.run(form.submit())

	assert accepted is False
	assert form.error == 'Username "sa01" already exists. Please choose a different username.'
	assert form.values == values
	assert form.is_open


def test_failure_without_message_uses_fallback():
	submit = AsyncMock(return_value=Envelope(success=False))
	form = FormController("item", submit, fallback_message="Failed to create inventory item")
	form.open()
	asyncio.run(form.submit())
	assert form.error == "Failed to create inventory item"


def test_action_guard_skips_concurrent_runs():
	async def scenario():
		release = asyncio.get_running_loop().create_future()
		guard = ActionGuard("delete")

		async def action():
			await release
			return Envelope.failure("")

		first = asyncio.ensure_future(guard.run(action, "Failed to delete user"))
		await asyncio.sleep(0)
		skipped = await guard.run(action, "Failed to delete user")
		release.set_result(None)
		return await first, skipped, guard

	first, skipped, guard = asyncio.run(scenario())
	assert skipped is None
	assert first.success is False
	assert guard.error == "Failed to delete user"
	assert not guard.in_flight
