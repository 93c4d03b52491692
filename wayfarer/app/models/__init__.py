from wayfarer.app.models.user import Role, User
from wayfarer.app.models.session import UserSession
from wayfarer.app.models.journal_entry import JournalEntry, Mood
from wayfarer.app.models.role_audit import RoleChangeAudit

__all__ = ["Role", "User", "UserSession", "JournalEntry", "Mood", "RoleChangeAudit"]
