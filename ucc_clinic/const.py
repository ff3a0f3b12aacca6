"""Constants for the UCC clinic admin console."""

from datetime import timedelta

# Environments
ENV_DEVELOPMENT = "development"
ENV_PRODUCTION = "production"

# Environment variables
CONF_ENV = "CLINIC_ENV"
CONF_API_URL = "CLINIC_API_URL"
CONF_LEGACY_API_URL = "VITE_API_URL"
CONF_FEATURE_USER_MANAGEMENT = "CLINIC_FEATURE_USER_MANAGEMENT"
CONF_FEATURE_EMAIL_TESTING = "CLINIC_FEATURE_EMAIL_TESTING"
CONF_POLL_INTERVAL = "CLINIC_POLL_INTERVAL"
CONF_REQUEST_TIMEOUT = "CLINIC_REQUEST_TIMEOUT"

# Default values
DEFAULT_POLL_INTERVAL = timedelta(seconds=30)  # Pending-request badge refresh
DEFAULT_SLIDE_INTERVAL = timedelta(seconds=5)  # Announcement auto-advance
DEFAULT_REQUEST_TIMEOUT = 30.0
SLIDESHOW_SIZE = 5
EXPIRING_DAYS_AHEAD = 90
STALE_AFTER_FAILURES = 3

# Report display limits
TOP_DISEASES_LIMIT = 5
TOP_CONSUMED_LIMIT = 10
TREND_LIMIT = 10
TIMELINE_PREVIEW_LIMIT = 10
SAMPLE_STUDENTS_LIMIT = 3
YEAR_OPTIONS_COUNT = 5

# Roles
ROLE_ADMIN = "admin"
ROLE_NURSE = "nurse"
ROLE_STUDENT_ASSISTANT = "student_assistant"

ROLE_LABELS = {
	ROLE_ADMIN: "Admin",
	ROLE_NURSE: "Nurse",
	ROLE_STUDENT_ASSISTANT: "Student Assistant",
}

# Request statuses
STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"

# Inventory statuses (server computed)
STOCK_STATUSES = ("normal", "low", "critical", "overstock")
EXPIRATION_STATUSES = ("good", "warning", "expiring", "expired")

# Routes
ROUTE_LANDING = "/"
ROUTE_ADMIN_HOME = "/admin/home"
ROUTE_ENHANCED_INVENTORY = "/admin/enhanced-inventory"
ROUTE_REGISTRATION = "/admin/registration"
ROUTE_NOTIFICATIONS = "/admin/notifications"
ROUTE_USER_MANAGEMENT = "/admin/user-management"
ROUTE_ANNOUNCEMENT = "/admin/announcement"
ROUTE_REQUESTED_FORM = "/admin/requested-form"
ROUTE_MONTHLY_REPORT = "/admin/monthly-report"
ROUTE_REPORTING = "/admin/reporting"
ROUTE_COMPREHENSIVE_REPORTS = "/admin/comprehensive-reports"

ROLE_LANDING_ROUTES = {
	ROLE_ADMIN: ROUTE_ADMIN_HOME,
	ROLE_NURSE: ROUTE_ADMIN_HOME,
	ROLE_STUDENT_ASSISTANT: ROUTE_NOTIFICATIONS,
}

# Messages
MSG_LOGIN_FAILED = "Login failed"
MSG_EMAIL_ADDRESS_REQUIRED = "Please enter a test email address"
MSG_EMAIL_NETWORK_ERROR = "Network error occurred"
MSG_FEATURE_DISABLED = "This feature is not available"

# Report tabs
TAB_OVERVIEW = "overview"
TAB_MEDICAL = "medical"
TAB_INVENTORY = "inventory"
TAB_REGISTRATIONS = "registrations"
TAB_CHRONOLOGICAL = "chronological"
TAB_DISEASES = "diseases"

GROUP_BY_OPTIONS = ("day", "week", "month")
