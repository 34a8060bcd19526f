"""SQLAlchemy table definitions for the embedded store."""

from jarvis.models.base import Base
from jarvis.models.contact import ContactRecord
from jarvis.models.message import MessageRecord

__all__ = [
    "Base",
    "ContactRecord",
    "MessageRecord",
]
