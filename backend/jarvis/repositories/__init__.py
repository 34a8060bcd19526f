"""Repository layer: storage gateways for contacts and messages."""

from jarvis.repositories.base import BaseRepository, FindOptions, Repository
from jarvis.repositories.contact import ContactRepository
from jarvis.repositories.mappers import ContactMapper, MessageMapper
from jarvis.repositories.message import MessageRepository, MessageStats

__all__ = [
    "BaseRepository",
    "ContactMapper",
    "ContactRepository",
    "FindOptions",
    "MessageMapper",
    "MessageRepository",
    "MessageStats",
    "Repository",
]
