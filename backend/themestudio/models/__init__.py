from .user import User
from .store import Store
from .template import Template
from .section import SectionInstance
from .block import Block
from .template_snapshot import TemplateSnapshot
from .audit_log import AuditLog

__all__ = [
    "User",
    "Store",
    "Template",
    "SectionInstance",
    "Block",
    "TemplateSnapshot",
    "AuditLog",
]
