from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Union

# Maior valor da coluna INT usada como chave primária
MAX_ROW_ID = 2**31 - 1


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    DATABASE = "database"


@dataclass(frozen=True)
class Success:
    value: Any


@dataclass(frozen=True)
class Failure:
    """
    Erro tipado devolvido pela camada de dados ou de validação.
    A conversão para status HTTP acontece uma única vez, na borda da API.
    """
    kind: ErrorKind
    message: str
    fields: List[str] = field(default_factory=list)
    detail: Optional[str] = None


Result = Union[Success, Failure]


@dataclass(frozen=True)
class EventDraft:
    name: str
    date: datetime
    location: str


@dataclass(frozen=True)
class EventChanges:
    """
    Alterações parciais de um evento. None significa "manter o valor atual".
    """
    name: Optional[str] = None
    date: Optional[datetime] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class AttendeeDraft:
    name: str
    email: str
    event_id: int


@dataclass(frozen=True)
class EventRecord:
    id: int
    name: str
    date: datetime
    location: str


@dataclass(frozen=True)
class AttendeeRecord:
    id: int
    name: str
    email: str
    event_id: int


@dataclass(frozen=True)
class DeletedEvent:
    event: EventRecord
    attendees_removed: int
