"""Console pages, one controller per admin screen."""

from .announcements import AnnouncementSlideshow, AnnouncementsAdminPage
from .auth import AuthSession, LoginPage, landing_route_for
from .base import Page
from .email_test import EmailTestPage
from .inventory import EnhancedInventoryPage
from .reports import ComprehensiveReportsPage, ReportingDashboard
from .requests import NotificationsPage, RequestedFormsPage
from .shell import AdminShell
from .users import UserManagementPage

__all__ = [
	"AdminShell",
	"AnnouncementSlideshow",
	"AnnouncementsAdminPage",
	"AuthSession",
	"ComprehensiveReportsPage",
	"EmailTestPage",
	"EnhancedInventoryPage",
	"LoginPage",
	"NotificationsPage",
	"Page",
	"ReportingDashboard",
	"RequestedFormsPage",
	"UserManagementPage",
	"landing_route_for",
]
