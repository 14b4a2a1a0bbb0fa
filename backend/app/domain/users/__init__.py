"""Users & agencies domain."""
from .models import Agency, AgencyBase, AgencyRead, AuditLog, User, UserRole

__all__ = ["Agency", "AgencyBase", "AgencyRead", "AuditLog", "User", "UserRole"]
