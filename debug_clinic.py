#!/usr/bin/env python3
"""
UCC Clinic Debug Script

Talks to the configured clinic backend and prints what the console pages would
show: announcements, pending requests, inventory status and email settings.

Usage:
    python3 debug_clinic.py

Settings come from the environment or a .env file, for example:
    CLINIC_ENV=development
    CLINIC_API_URL=http://localhost:5000
    CLINIC_USERNAME=admin
    CLINIC_PASSWORD=your_password_here

Login is only attempted when a username is configured.
"""

import asyncio
import getpass
import logging
import os
import sys

from ucc_clinic.clinicapi.client import ClinicClient
from ucc_clinic.clinicapi.exceptions import ClinicConfigError
from ucc_clinic.clinicapi.utils import DATE_STYLE_DATETIME, format_currency, format_date
from ucc_clinic.config import load_config
from ucc_clinic.const import SLIDESHOW_SIZE, STATUS_PENDING
from ucc_clinic.derived import filter_by_status, group_counts, top_n_by_recency
from ucc_clinic.pages.auth import landing_route_for

logging.basicConfig(
	level=logging.DEBUG,
	format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


async def debug_login(client: ClinicClient) -> None:
	username = os.getenv("CLINIC_USERNAME")
	if not username:
		print("\nℹ️  CLINIC_USERNAME not set, skipping login check")
		return
	password = os.getenv("CLINIC_PASSWORD") or getpass.getpass(f"Password for {username}: ").strip()

	print("\n🔐 Login")
	envelope = await client.login(username, password)
	if envelope.success:
		user = envelope.data
		print(f"   ✅ {user.display_name} ({user.role}) would land on {landing_route_for(user.role)}")
	else:
		print(f"   ❌ {envelope.message} [{envelope.cause}]")


async def debug_announcements(client: ClinicClient) -> None:
	print("\n📢 Announcements")
	envelope = await client.get_announcements()
	if not envelope.success:
		print(f"   ❌ {envelope.message} [{envelope.cause}]")
		return
	print(f"   {len(envelope.data)} total, slideshow shows:")
	for announcement in top_n_by_recency(envelope.data, SLIDESHOW_SIZE):
		print(f"   - {announcement.title} ({format_date(announcement.created_at, DATE_STYLE_DATETIME)})")


async def debug_requests(client: ClinicClient) -> None:
	print("\n📝 Medical requests")
	envelope = await client.get_requests()
	if not envelope.success:
		print(f"   ❌ {envelope.message} [{envelope.cause}]")
		return
	pending = filter_by_status(envelope.data, STATUS_PENDING)
	print(f"   {len(envelope.data)} total, {len(pending)} pending")
	print(f"   By status: {group_counts(envelope.data, 'status')}")


async def debug_inventory(client: ClinicClient) -> None:
	print("\n📦 Enhanced inventory")
	envelope = await client.get_inventory_items()
	if not envelope.success:
		print(f"   ❌ {envelope.message} [{envelope.cause}]")
		return
	items = envelope.data
	total_value = sum(item.cost * item.total_quantity for item in items)
	print(f"   {len(items)} items, stock value {format_currency(total_value)}")
	print(f"   Stock status: {group_counts(items, 'stock_status')}")
	print(f"   Expiration status: {group_counts(items, 'expiration_status')}")

	expiring = await client.get_expiring_items()
	if expiring.success:
		print(f"   {len(expiring.data)} items expire within 90 days")
		for item in expiring.data[:5]:
			print(f"   - {item.name}: {format_date(item.expiration_date)}")


async def debug_email_config(client: ClinicClient) -> None:
	print("\n✉️  Email configuration")
	envelope = await client.get_email_config()
	if envelope.success:
		print(f"   {envelope.data}")
	else:
		print(f"   ❌ {envelope.message} [{envelope.cause}]")


async def main():
	"""Main debug function."""
	print("🏥 UCC Clinic Debug Tool")
	print("=" * 40)

	try:
		config = load_config()
	except ClinicConfigError as e:
		print(f"❌ {e}")
		return

	print(f"Backend: {config.api_url} ({config.environment})")
	print(f"User management: {'on' if config.features.user_management_enabled else 'off'}")

	async with ClinicClient(config.api_url, timeout=config.request_timeout) as client:
		await debug_login(client)
		await debug_announcements(client)
		await debug_requests(client)
		await debug_inventory(client)
		if config.features.email_testing_enabled:
			await debug_email_config(client)

	print("\n✅ Debug complete!")


if __name__ == "__main__":
	try:
		asyncio.run(main())
	except KeyboardInterrupt:
		print("\n\n⚠️ Debug interrupted by user.")
		sys.exit(1)
