#!/usr/bin/env python3
"""HTTP data client tests against a local aiohttp server."""

import asyncio
import socket

from aiohttp import web
from aiohttp.test_utils import TestServer

from ucc_clinic.clinicapi.client import NETWORK_ERROR_MESSAGE, NON_JSON_MESSAGE, ClinicClient
from ucc_clinic.clinicapi.models import (
	CAUSE_HTTP_STATUS,
	CAUSE_NON_JSON,
	CAUSE_SERVER,
	CAUSE_TRANSPORT,
	Announcement,
	InventoryItem,
	User,
)
from ucc_clinic.store import STATE_ERROR, ViewStateStore


def run_against(routes, scenario):
	"""Serve ``routes`` locally and run ``scenario(client)`` against them."""
	async def runner():
		app = web.Application()
		for method, path, handler in routes:
			app.router.add_route(method, path, handler)
		server = TestServer(app)
		await server.start_server()
		try:
			async with ClinicClient(str(server.make_url(""))) as client:
				return await scenario(client)
		finally:
			await server.close()
	return asyncio.run(runner())


def _free_port() -> int:
	with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
		sock.bind(("127.0.0.1", 0))
		return sock.getsockname()[1]


def test_successful_list_is_parsed_into_models():
	async def handler(request):
		return web.json_response({
			"success": True,
			"data": [
				{"id": "a1", "title": "Flu shots", "description": "Friday", "createdAt": "2025-03-01T08:00:00Z"},
			],
		})

	envelope = run_against([("GET", "/api/announcement", handler)], lambda c: c.get_announcements())
	assert envelope.success is True
	assert envelope.status == 200
	assert isinstance(envelope.data[0], Announcement)
	assert envelope.data[0].title == "Flu shots"


def test_unsuccessful_envelope_keeps_server_message():
	async def handler(request):
		return web.json_response({"success": False, "message": "Database offline"})

	envelope = run_against([("GET", "/api/requests", handler)], lambda c: c.get_requests())
	assert envelope.success is False
	assert envelope.message == "Database offline"
	assert envelope.cause == CAUSE_SERVER


def test_unsuccessful_envelope_without_message_uses_fallback():
	async def handler(request):
		return web.json_response({"success": False})

	envelope = run_against([("GET", "/api/announcement", handler)], lambda c: c.get_announcements())
	assert envelope.message == "Failed to fetch announcements"


def test_http_404_is_reported_with_status():
	async def handler(request):
		return web.Response(status=404, text="Cannot GET /api/auth/users")

	envelope = run_against([("GET", "/api/auth/users", handler)], lambda c: c.get_users())
	assert envelope.success is False
	assert envelope.cause == CAUSE_HTTP_STATUS
	assert envelope.status == 404
	assert envelope.message == "Server error: 404"


def test_non_json_body_is_a_non_json_failure():
	async def handler(request):
		return web.Response(text="<html>maintenance</html>", content_type="text/html")

	envelope = run_against([("GET", "/api/announcement", handler)], lambda c: c.get_announcements())
	assert envelope.success is False
	assert envelope.cause == CAUSE_NON_JSON
	assert envelope.message == NON_JSON_MESSAGE


def test_undecodable_body_is_a_non_json_failure_and_store_settles():
	async def handler(request):
		return web.Response(body=b'{"success": true, "data": ["\xff\xfe"]}', content_type="application/json")

	async def scenario(client):
		envelope = await client.get_announcements()
		store = ViewStateStore("announcements", empty=list)
		await store.refresh(client.get_announcements)
		polled = await store.refresh(client.get_announcements, background=True)
		return envelope, store, polled

	envelope, store, polled = run_against([("GET", "/api/announcement", handler)], scenario)
	assert envelope.success is False
	assert envelope.cause == CAUSE_NON_JSON
	assert envelope.message == NON_JSON_MESSAGE
	assert store.status == STATE_ERROR
	assert store.data == []
	assert polled is False
	assert store.background_failures == 1


def test_json_with_wrong_content_type_is_still_parsed():
	async def handler(request):
		return web.Response(text='{"success": true, "data": []}', content_type="text/plain")

	envelope = run_against([("GET", "/api/requests", handler)], lambda c: c.get_requests())
	assert envelope.success is True
	assert envelope.data == []


def test_unreachable_server_is_a_transport_failure():
	async def scenario():
		async with ClinicClient(f"http://127.0.0.1:{_free_port()}", timeout=5) as client:
			return await client.get_announcements()

	envelope = asyncio.run(scenario())
	assert envelope.success is False
	assert envelope.cause == CAUSE_TRANSPORT
	assert envelope.message == NETWORK_ERROR_MESSAGE


def test_conflict_details_survive_error_status():
	async def handler(request):
		return web.json_response(
			{
				"success": False,
				"message": "Duplicate email",
				"type": "email",
				"existingUser": {"fullName": "Ana Cruz", "role": "nurse", "email": "ana@ucc.test"},
			},
			status=409,
		)

	envelope = run_against(
		[("POST", "/api/auth/users", handler)],
		lambda c: c.create_user({"username": "ana", "email": "ana@ucc.test"}),
	)
	assert envelope.success is False
	assert envelope.status == 409
	assert envelope.message == "Duplicate email"
	assert envelope.conflict_type == "email"
	assert envelope.existing["fullName"] == "Ana Cruz"


def test_empty_filters_are_omitted_from_query():
	seen = []

	async def handler(request):
		seen.append(dict(request.query))
		return web.json_response({
			"success": True,
			"data": [{"id": "i1", "name": "Paracetamol", "categoryHierarchy": {"level1": "Medicine", "level2": ""}}],
		})

	envelope = run_against(
		[("GET", "/api/enhanced-inventory/items", handler)],
		lambda c: c.get_inventory_items(category="", brand="Biogesic", search=None),
	)
	assert seen == [{"brand": "Biogesic"}]
	item = envelope.data[0]
	assert isinstance(item, InventoryItem)
	assert item.category_levels == ["Medicine"]
	assert item.unit == "pcs"


def test_login_returns_user_from_user_field():
	received = []

	async def handler(request):
		received.append(await request.json())
		return web.json_response({
			"success": True,
			"user": {"id": "u1", "username": "sa01", "role": "student_assistant", "fullName": "Mia Reyes"},
		})

	envelope = run_against([("POST", "/api/auth/login", handler)], lambda c: c.login("sa01", "secret"))
	assert received == [{"username": "sa01", "password": "secret"}]
	assert isinstance(envelope.data, User)
	assert envelope.data.role == "student_assistant"


def test_timeline_sends_date_range_and_resolution():
	seen = []

	async def handler(request):
		seen.append(dict(request.query))
		return web.json_response({"success": True, "data": {"metadata": {}, "timeline": [{"date": "2024-02-01"}]}})

	envelope = run_against(
		[("GET", "/api/chronological/timeline", handler)],
		lambda c: c.get_timeline("2024-02-01", "2024-02-29", resolution="week"),
	)
	assert seen == [{
		"dataType": "combined",
		"resolution": "week",
		"startDate": "2024-02-01",
		"endDate": "2024-02-29",
	}]
	assert envelope.data.timeline[0].date == "2024-02-01"


def test_user_status_patch_body():
	received = []

	async def handler(request):
		received.append((request.match_info["user_id"], await request.json()))
		return web.json_response({"success": True})

	envelope = run_against(
		[("PATCH", "/api/auth/users/{user_id}/status", handler)],
		lambda c: c.set_user_status("u7", False),
	)
	assert envelope.success is True
	assert received == [("u7", {"isActive": False})]


def test_email_config_is_read_from_config_field():
	async def handler(request):
		return web.json_response({"success": True, "config": {"host": "smtp.ucc.test", "configured": True}})

	envelope = run_against([("GET", "/api/test/email-config", handler)], lambda c: c.get_email_config())
	assert envelope.success is True
	assert envelope.data == {"host": "smtp.ucc.test", "configured": True}
