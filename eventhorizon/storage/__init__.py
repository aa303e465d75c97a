"""
Camada de persistência: pool de conexões, modelos e repositórios.
"""

from .database import Base, Database, DatabaseUnavailableError
from .models import Attendee, Event
from .repository import AttendeeRepository, EventRepository

__all__ = [
    "Base",
    "Database",
    "DatabaseUnavailableError",
    "Event",
    "Attendee",
    "EventRepository",
    "AttendeeRepository",
]
