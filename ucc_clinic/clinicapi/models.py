"""Data models for clinic API entities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .utils import parse_datetime, to_float, to_int

# Envelope failure causes
CAUSE_TRANSPORT = "transport"
CAUSE_HTTP_STATUS = "http_status"
CAUSE_NON_JSON = "non_json"
CAUSE_SERVER = "server"
CAUSE_VALIDATION = "validation"


@dataclass
class Envelope:
	"""The ``{success, data|message}`` wrapper every API response conforms to."""
	success: bool
	data: Any = None
	message: Optional[str] = None
	cause: Optional[str] = None
	status: Optional[int] = None
	conflict_type: Optional[str] = None
	existing: Optional[Dict[str, Any]] = None
	payload: Dict[str, Any] = field(default_factory=dict)

	@classmethod
	def ok(cls, data: Any = None, message: Optional[str] = None, **kwargs) -> "Envelope":
		return cls(success=True, data=data, message=message, **kwargs)

	@classmethod
	def failure(cls, message: str, cause: str = CAUSE_SERVER, **kwargs) -> "Envelope":
		return cls(success=False, message=message, cause=cause, **kwargs)

	@classmethod
	def from_payload(cls, payload: Dict[str, Any], status: Optional[int] = None) -> "Envelope":
		"""Build an envelope from a decoded response body."""
		success = bool(payload.get("success"))
		return cls(
			success=success,
			data=payload.get("data"),
			message=payload.get("message"),
			cause=None if success else CAUSE_SERVER,
			status=status,
			conflict_type=payload.get("type"),
			existing=payload.get("existingUser"),
			payload=payload,
		)

	def with_data(self, data: Any) -> "Envelope":
		"""Copy of this envelope carrying parsed data."""
		return Envelope(
			success=self.success,
			data=data,
			message=self.message,
			cause=self.cause,
			status=self.status,
			conflict_type=self.conflict_type,
			existing=self.existing,
			payload=self.payload,
		)


@dataclass
class Announcement:
	"""A clinic announcement."""
	id: str
	title: str
	description: str
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Announcement":
		return cls(
			id=str(data.get("id", "")),
			title=data.get("title", ""),
			description=data.get("description", ""),
			created_at=parse_datetime(data.get("createdAt")),
			updated_at=parse_datetime(data.get("updatedAt")),
		)

	def __str__(self) -> str:
		stamp = self.created_at.strftime('%Y-%m-%d') if self.created_at else "undated"
		return f"{self.title} - {stamp}"


@dataclass
class RequestForm:
	"""A medical request submitted by a student."""
	id: str
	fullname: str
	status: str
	year_section: Optional[str] = None
	school_id_number: Optional[str] = None
	department_course: Optional[str] = None
	assessment: Optional[str] = None
	referred_to: Optional[str] = None
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "RequestForm":
		return cls(
			id=str(data.get("id", "")),
			fullname=data.get("fullname", ""),
			status=data.get("status", ""),
			year_section=data.get("yearSection"),
			school_id_number=data.get("schoolIdNumber"),
			department_course=data.get("departmentCourse"),
			assessment=data.get("assessment"),
			referred_to=data.get("referredTo"),
			created_at=parse_datetime(data.get("createdAt")),
			updated_at=parse_datetime(data.get("updatedAt")),
		)


@dataclass
class InventoryBatch:
	"""One delivery batch of an inventory item."""
	batch_number: str
	quantity: int = 0
	delivery_date: Optional[datetime] = None
	expiration_date: Optional[datetime] = None
	manufacturing_date: Optional[datetime] = None
	cost: float = 0.0
	supplier: Optional[str] = None
	serial_number: Optional[str] = None
	is_active: bool = True

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "InventoryBatch":
		return cls(
			batch_number=data.get("batchNumber", ""),
			quantity=to_int(data.get("quantity")),
			delivery_date=parse_datetime(data.get("deliveryDate")),
			expiration_date=parse_datetime(data.get("expirationDate")),
			manufacturing_date=parse_datetime(data.get("manufacturingDate")),
			cost=to_float(data.get("cost")),
			supplier=data.get("supplier"),
			serial_number=data.get("serialNumber"),
			is_active=bool(data.get("isActive", True)),
		)


CATEGORY_LEVELS = 8


@dataclass
class InventoryItem:
	"""An enhanced inventory item with up to eight category levels."""
	id: str
	name: str
	generic_name: Optional[str] = None
	category_levels: List[str] = field(default_factory=list)
	brand: Optional[str] = None
	manufacturer: Optional[str] = None
	quantity: int = 0
	total_quantity: int = 0
	unit: str = "pcs"
	delivery_date: Optional[datetime] = None
	expiration_date: Optional[datetime] = None
	manufacturing_date: Optional[datetime] = None
	batch_number: Optional[str] = None
	serial_number: Optional[str] = None
	sku: Optional[str] = None
	barcode: Optional[str] = None
	cost: float = 0.0
	supplier: Optional[str] = None
	supplier_contact: Optional[str] = None
	storage_location: Optional[str] = None
	storage_conditions: Optional[str] = None
	min_stock_level: int = 10
	max_stock_level: int = 100
	reorder_point: int = 20
	description: Optional[str] = None
	notes: Optional[str] = None
	is_active: bool = True
	stock_status: str = "normal"  # "normal", "low", "critical", "overstock"
	expiration_status: str = "good"  # "good", "warning", "expiring", "expired"
	days_until_expiration: Optional[int] = None
	batches: List[InventoryBatch] = field(default_factory=list)
	last_updated: Optional[datetime] = None
	created_at: Optional[datetime] = None

	@property
	def category(self) -> str:
		"""Top-level category."""
		return self.category_levels[0] if self.category_levels else ""

	@property
	def category_path(self) -> str:
		return " > ".join(level for level in self.category_levels if level)

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "InventoryItem":
		hierarchy = data.get("categoryHierarchy") or {}
		levels = [hierarchy.get(f"level{i}") or "" for i in range(1, CATEGORY_LEVELS + 1)]
		while levels and not levels[-1]:
			levels.pop()

		days = data.get("daysUntilExpiration")
		return cls(
			id=str(data.get("id", "")),
			name=data.get("name", ""),
			generic_name=data.get("genericName"),
			category_levels=levels,
			brand=data.get("brand"),
			manufacturer=data.get("manufacturer"),
			quantity=to_int(data.get("quantity")),
			total_quantity=to_int(data.get("totalQuantity", data.get("quantity"))),
			unit=data.get("unit") or "pcs",
			delivery_date=parse_datetime(data.get("deliveryDate")),
			expiration_date=parse_datetime(data.get("expirationDate")),
			manufacturing_date=parse_datetime(data.get("manufacturingDate")),
			batch_number=data.get("batchNumber"),
			serial_number=data.get("serialNumber"),
			sku=data.get("sku"),
			barcode=data.get("barcode"),
			cost=to_float(data.get("cost")),
			supplier=data.get("supplier"),
			supplier_contact=data.get("supplierContact"),
			storage_location=data.get("storageLocation"),
			storage_conditions=data.get("storageConditions"),
			min_stock_level=to_int(data.get("minStockLevel"), 10),
			max_stock_level=to_int(data.get("maxStockLevel"), 100),
			reorder_point=to_int(data.get("reorderPoint"), 20),
			description=data.get("description"),
			notes=data.get("notes"),
			is_active=bool(data.get("isActive", True)),
			stock_status=data.get("stockStatus") or "normal",
			expiration_status=data.get("expirationStatus") or "good",
			days_until_expiration=to_int(days) if days is not None else None,
			batches=[InventoryBatch.from_dict(b) for b in data.get("batches") or []],
			last_updated=parse_datetime(data.get("lastUpdated")),
			created_at=parse_datetime(data.get("createdAt")),
		)

	def __str__(self) -> str:
		return f"{self.name} ({self.total_quantity} {self.unit}) [{self.stock_status}]"


@dataclass
class User:
	"""A console account."""
	id: str
	username: str
	role: str  # "admin", "nurse", "student_assistant"
	full_name: str = ""
	email: Optional[str] = None
	contact_number: Optional[str] = None
	student_id: Optional[str] = None
	is_active: bool = True
	created_at: Optional[datetime] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "User":
		return cls(
			id=str(data.get("id", "")),
			username=data.get("username", ""),
			role=data.get("role", ""),
			full_name=data.get("fullName", ""),
			email=data.get("email"),
			contact_number=data.get("contactNumber"),
			student_id=data.get("studentId"),
			is_active=bool(data.get("isActive", True)),
			created_at=parse_datetime(data.get("createdAt")),
		)

	@property
	def display_name(self) -> str:
		return self.full_name or self.username


@dataclass
class TopDisease:
	disease: str
	count: int
	percentage: int

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "TopDisease":
		return cls(
			disease=data.get("disease", ""),
			count=to_int(data.get("count")),
			percentage=to_int(data.get("percentage")),
		)


@dataclass
class MonthlyReport:
	"""Server-computed monthly report; rendered as received."""
	medical: Dict[str, Any]
	inventory: Dict[str, Any]
	registrations: Dict[str, Any]
	summary: Dict[str, Any]

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "MonthlyReport":
		return cls(
			medical=data.get("medical") or {},
			inventory=data.get("inventory") or {},
			registrations=data.get("registrations") or {},
			summary=data.get("summary") or {},
		)

	@property
	def top_diseases(self) -> List[TopDisease]:
		return [TopDisease.from_dict(d) for d in self.medical.get("topDiseases") or []]

	@property
	def top_consumed_items(self) -> List[Dict[str, Any]]:
		consumption = self.inventory.get("consumption") or {}
		return list(consumption.get("topConsumedItems") or [])


@dataclass
class ComprehensiveReport:
	"""Server-computed disease and inventory statistics for one month."""
	period: Dict[str, Any]
	disease_statistics: Dict[str, Any]
	inventory_statistics: Dict[str, Any]
	summary: Dict[str, Any]

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "ComprehensiveReport":
		return cls(
			period=data.get("period") or {},
			disease_statistics=data.get("diseaseStatistics") or {},
			inventory_statistics=data.get("inventoryStatistics") or {},
			summary=data.get("summary") or {},
		)

	@property
	def top_diseases(self) -> List[TopDisease]:
		return [TopDisease.from_dict(d) for d in self.disease_statistics.get("topDiseases") or []]

	def students_for(self, disease: str) -> List[Dict[str, Any]]:
		details = (self.disease_statistics.get("diseaseDetails") or {}).get(disease) or {}
		return list(details.get("students") or [])


@dataclass
class TimelineEntry:
	"""One bucket of the chronological report."""
	date: str
	timestamp: Optional[datetime] = None
	medical: Optional[Dict[str, Any]] = None
	inventory: Optional[Dict[str, Any]] = None
	registrations: Optional[Dict[str, Any]] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "TimelineEntry":
		return cls(
			date=data.get("date", ""),
			timestamp=parse_datetime(data.get("timestamp")),
			medical=data.get("medical"),
			inventory=data.get("inventory"),
			registrations=data.get("registrations"),
		)


@dataclass
class ChronologicalTimeline:
	metadata: Dict[str, Any]
	timeline: List[TimelineEntry]

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "ChronologicalTimeline":
		return cls(
			metadata=data.get("metadata") or {},
			timeline=[TimelineEntry.from_dict(e) for e in data.get("timeline") or []],
		)
