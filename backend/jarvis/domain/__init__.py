"""Validated domain entities persisted through repositories."""

from jarvis.domain.contact import Contact
from jarvis.domain.message import AckLevel, CommandInvocation, Message, MessageType

__all__ = [
    "AckLevel",
    "CommandInvocation",
    "Contact",
    "Message",
    "MessageType",
]
