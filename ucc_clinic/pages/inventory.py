"""Enhanced inventory page: filtered item list, expiring items and item CRUD."""

import logging
from typing import Any, Dict, List, Optional

from ..clinicapi.models import Envelope, InventoryItem
from ..clinicapi.utils import DATE_STYLE_ISO, DATE_STYLE_SHORT, format_currency, format_date
from ..const import EXPIRATION_STATUSES, EXPIRING_DAYS_AHEAD, STOCK_STATUSES
from ..derived import group_counts
from ..forms import ActionGuard, FormController
from .base import Page

_LOGGER = logging.getLogger(__name__)

CATEGORY_FIELDS = (
	"category",
	"subcategory",
	"subsubcategory",
	"categoryLevel3",
	"categoryLevel4",
	"categoryLevel5",
	"categoryLevel6",
	"categoryLevel7",
)

ITEM_FORM_DEFAULTS = {
	"name": "",
	"genericName": "",
	**{name: "" for name in CATEGORY_FIELDS},
	"brand": "",
	"manufacturer": "",
	"quantity": "",
	"unit": "pcs",
	"deliveryDate": "",
	"expirationDate": "",
	"manufacturingDate": "",
	"batchNumber": "",
	"serialNumber": "",
	"sku": "",
	"barcode": "",
	"cost": "",
	"supplier": "",
	"supplierContact": "",
	"storageLocation": "",
	"storageConditions": "",
	"minStockLevel": "10",
	"maxStockLevel": "100",
	"reorderPoint": "20",
	"description": "",
	"notes": "",
}

CREATE_REQUIRED = ("name", "quantity", "category", "deliveryDate", "expirationDate", "supplier", "cost")
EDIT_REQUIRED = ("name", "quantity", "category")

ITEM_LABELS = {
	"name": "Item Name",
	"quantity": "Quantity",
	"category": "Category",
	"deliveryDate": "Delivery Date",
	"expirationDate": "Expiration Date",
	"supplier": "Supplier",
	"cost": "Cost",
}


def _empty_lookups() -> Dict[str, List[str]]:
	return {"categories": [], "brands": []}


def _text(value: Any, default: str = "") -> str:
	if value is None or value == "":
		return default
	return str(value)


def _iso_date(value: Any) -> str:
	return "" if value is None else format_date(value, DATE_STYLE_ISO)


def item_form_values(item: InventoryItem) -> Dict[str, Any]:
	"""Edit-form values for an existing item; dates as YYYY-MM-DD."""
	levels = list(item.category_levels) + [""] * 8
	values = {
		"name": item.name or "",
		"genericName": _text(item.generic_name),
		"category": levels[0],
		"subcategory": levels[1],
		"subsubcategory": levels[2],
		"categoryLevel3": levels[2],
		"categoryLevel4": levels[3],
		"categoryLevel5": levels[4],
		"categoryLevel6": levels[5],
		"categoryLevel7": levels[6],
		"brand": _text(item.brand),
		"manufacturer": _text(item.manufacturer),
		"quantity": _text(item.total_quantity),
		"unit": item.unit or "pcs",
		"deliveryDate": _iso_date(item.delivery_date),
		"expirationDate": _iso_date(item.expiration_date),
		"manufacturingDate": _iso_date(item.manufacturing_date),
		"batchNumber": _text(item.batch_number),
		"serialNumber": _text(item.serial_number),
		"sku": _text(item.sku),
		"barcode": _text(item.barcode),
		"cost": _text(item.cost),
		"supplier": _text(item.supplier),
		"supplierContact": _text(item.supplier_contact),
		"storageLocation": _text(item.storage_location),
		"storageConditions": _text(item.storage_conditions),
		"minStockLevel": _text(item.min_stock_level, "10"),
		"maxStockLevel": _text(item.max_stock_level, "100"),
		"reorderPoint": _text(item.reorder_point, "20"),
		"description": _text(item.description),
		"notes": _text(item.notes),
	}
	return values


class EnhancedInventoryPage(Page):
	"""Inventory list with category/brand/search filters.

	Filters are applied server-side: every change re-fetches the item list and
	only the newest response is shown. Empty filters are omitted from the query.
	"""

	def __init__(self, client, config, session=None, sleep=None) -> None:
		super().__init__(client, config, session=session, sleep=sleep)
		self.items_store = self.create_store("inventory-items", empty=list)
		self.lookups_store = self.create_store("inventory-categories", empty=_empty_lookups)
		self.expiring_store = self.create_store("expiring-items", empty=list)
		self.category = ""
		self.brand = ""
		self.search = ""
		self.show_expiring_only = False
		self.selected: Optional[InventoryItem] = None
		self.create_form = FormController(
			"create-inventory-item",
			self.client.create_inventory_item,
			required=CREATE_REQUIRED,
			defaults=ITEM_FORM_DEFAULTS,
			after_success=self.async_refresh_items,
			fallback_message="Failed to create inventory item",
			success_message="Enhanced inventory item created successfully!",
			labels=ITEM_LABELS,
		)
		self.edit_form = FormController(
			"edit-inventory-item",
			self._submit_edit,
			required=EDIT_REQUIRED,
			defaults=ITEM_FORM_DEFAULTS,
			after_success=self._after_edit,
			fallback_message="Failed to update inventory item",
			success_message="Enhanced inventory item updated successfully!",
			labels=ITEM_LABELS,
		)
		self.delete_action = ActionGuard("delete-inventory-item")
		self.delete_message: Optional[str] = None

	@property
	def items(self) -> List[InventoryItem]:
		return self.items_store.data or []

	@property
	def visible_items(self) -> List[InventoryItem]:
		if not self.show_expiring_only:
			return self.items
		expiring_ids = {item.id for item in self.expiring_items}
		return [item for item in self.items if item.id in expiring_ids]

	@property
	def categories(self) -> List[str]:
		return self.lookups_store.data["categories"]

	@property
	def brands(self) -> List[str]:
		return self.lookups_store.data["brands"]

	@property
	def expiring_items(self) -> List[InventoryItem]:
		return self.expiring_store.data or []

	@property
	def is_loading(self) -> bool:
		return self.items_store.is_loading

	@property
	def stock_status_counts(self) -> Dict[str, int]:
		counts = group_counts(self.items, "stock_status")
		return {status: counts.get(status, 0) for status in STOCK_STATUSES}

	@property
	def expiration_status_counts(self) -> Dict[str, int]:
		counts = group_counts(self.items, "expiration_status")
		return {status: counts.get(status, 0) for status in EXPIRATION_STATUSES}

	@staticmethod
	def cost_label(item: InventoryItem) -> str:
		return format_currency(item.cost)

	@staticmethod
	def expiration_label(item: InventoryItem) -> str:
		return format_date(item.expiration_date, DATE_STYLE_SHORT)

	async def _async_load(self) -> None:
		await self.async_refresh_items()
		await self.lookups_store.refresh(self.client.get_inventory_categories)
		await self.expiring_store.refresh(lambda: self.client.get_expiring_items(EXPIRING_DAYS_AHEAD))

	async def async_refresh_items(self) -> bool:
		category, brand, search = self.category, self.brand, self.search
		return await self.items_store.refresh(
			lambda: self.client.get_inventory_items(category=category, brand=brand, search=search)
		)

	async def async_set_filters(
		self,
		category: Optional[str] = None,
		brand: Optional[str] = None,
		search: Optional[str] = None,
	) -> bool:
		"""Change any of the filters and re-fetch; None leaves a filter as is."""
		if category is not None:
			self.category = category
		if brand is not None:
			self.brand = brand
		if search is not None:
			self.search = search
		return await self.async_refresh_items()

	def set_show_expiring_only(self, value: bool) -> None:
		self.show_expiring_only = value

	def open_create(self) -> None:
		self.create_form.open()

	def open_edit(self, item: InventoryItem) -> None:
		self.selected = item
		self.edit_form.open(item_form_values(item))

	async def _submit_edit(self, values: Dict[str, Any]) -> Envelope:
		if self.selected is None:
			return Envelope.failure("No inventory item selected")
		return await self.client.update_inventory_item(self.selected.id, values)

	async def _after_edit(self) -> None:
		self.selected = None
		await self.async_refresh_items()

	async def async_delete(self, item: InventoryItem) -> bool:
		self.delete_message = None
		envelope = await self.delete_action.run(
			lambda: self.client.delete_inventory_item(item.id),
			"Failed to delete inventory item",
		)
		if envelope is None or not envelope.success:
			return False
		self.delete_message = "Enhanced inventory item deleted successfully!"
		await self.async_refresh_items()
		return True
