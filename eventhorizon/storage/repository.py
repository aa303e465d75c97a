import logging
from typing import Callable, Optional
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from ..core.models import (
    AttendeeDraft,
    AttendeeRecord,
    DeletedEvent,
    ErrorKind,
    EventChanges,
    EventDraft,
    EventRecord,
    Failure,
    MAX_ROW_ID,
    Result,
    Success,
)
from .database import Database, DatabaseUnavailableError
from .models import Attendee, Event

logger = logging.getLogger(__name__)


def _event_record(event: Event) -> EventRecord:
    return EventRecord(id=event.id, name=event.name, date=event.date, location=event.location)


def _attendee_record(attendee: Attendee) -> AttendeeRecord:
    return AttendeeRecord(
        id=attendee.id,
        name=attendee.name,
        email=attendee.email,
        event_id=attendee.event_id,
    )


def _event_not_found(event_id: int) -> Failure:
    return Failure(ErrorKind.NOT_FOUND, "Event not found", detail=f"id={event_id}")


def _valid_id(event_id: int) -> bool:
    return 1 <= event_id <= MAX_ROW_ID


def _locked_event(session: Session, event_id: int) -> Optional[Event]:
    if not _valid_id(event_id):
        # Fora da faixa da coluna INT: não existe, e o driver rejeitaria o parâmetro
        return None
    # Trava a linha até o fim da transação (SQL Server: hint de tabela; outros: FOR UPDATE)
    query = (
        select(Event)
        .where(Event.id == event_id)
        .with_hint(Event, "WITH (UPDLOCK, ROWLOCK)", dialect_name="mssql")
        .with_for_update()
    )
    return session.scalars(query).first()


class _Repository:
    """
    Base dos repositórios: cada operação roda em uma sessão e transação próprias
    e devolve Success/Failure em vez de propagar exceções do banco.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    def _execute(
        self,
        operation: str,
        failure_message: str,
        work: Callable[[Session], Result],
    ) -> Result:
        try:
            with self._db.session() as session:
                with session.begin():
                    return work(session)
        except DatabaseUnavailableError as e:
            logger.warning(f"Banco indisponível: operation={operation}")
            return Failure(ErrorKind.UNAVAILABLE, "Database unavailable", detail=str(e))
        except SQLAlchemyError as e:
            logger.error(
                f"Erro de banco de dados: operation={operation}, "
                f"error={type(e).__name__}: {e}",
                exc_info=True,
            )
            return Failure(ErrorKind.DATABASE, failure_message, detail=str(e))


class EventRepository(_Repository):
    """
    Repositório para operações de persistência de eventos.
    """

    def list_events(self) -> Result:
        def work(session: Session) -> Result:
            events = session.scalars(select(Event).order_by(Event.date.desc())).all()
            return Success([_event_record(e) for e in events])

        return self._execute("list_events", "Failed to fetch events", work)

    def create_event(self, draft: EventDraft) -> Result:
        def work(session: Session) -> Result:
            event = Event(name=draft.name, date=draft.date, location=draft.location)
            session.add(event)
            session.flush()

            assert event.id is not None, (
                "Event persisted without id! "
                "This indicates a persistence error."
            )
            logger.debug(f"Evento criado: id={event.id}, name={event.name}")
            return Success(_event_record(event))

        return self._execute("create_event", "Failed to create event", work)

    def update_event(self, event_id: int, changes: EventChanges) -> Result:
        """
        Atualização parcial: campos None mantêm o valor gravado.
        Checagem de existência e UPDATE acontecem na mesma transação.
        """
        def work(session: Session) -> Result:
            event = _locked_event(session, event_id)
            if event is None:
                return _event_not_found(event_id)

            if changes.name is not None:
                event.name = changes.name
            if changes.date is not None:
                event.date = changes.date
            if changes.location is not None:
                event.location = changes.location
            session.flush()

            logger.debug(f"Evento atualizado: id={event.id}")
            return Success(_event_record(event))

        return self._execute("update_event", "Failed to update event", work)

    def delete_event(self, event_id: int) -> Result:
        """
        Remove o evento e suas inscrições na mesma transação.
        """
        def work(session: Session) -> Result:
            event = _locked_event(session, event_id)
            if event is None:
                return _event_not_found(event_id)

            snapshot = _event_record(event)
            removed = session.execute(
                delete(Attendee).where(Attendee.event_id == event_id)
            ).rowcount
            session.delete(event)
            session.flush()

            logger.info(f"Evento removido: id={event_id}, attendees_removed={removed}")
            return Success(DeletedEvent(event=snapshot, attendees_removed=removed or 0))

        return self._execute("delete_event", "Failed to delete event", work)


class AttendeeRepository(_Repository):
    """
    Repositório para operações de persistência de inscrições.
    """

    def list_attendees(self, event_id: Optional[int] = None) -> Result:
        def work(session: Session) -> Result:
            query = select(Attendee).order_by(Attendee.id)
            if event_id is not None:
                if not _valid_id(event_id):
                    return Success([])
                query = query.where(Attendee.event_id == event_id)
            return Success([_attendee_record(a) for a in session.scalars(query).all()])

        return self._execute("list_attendees", "Failed to fetch attendees", work)

    def create_attendee(self, draft: AttendeeDraft) -> Result:
        """
        Cria a inscrição somente se o evento existir (checagem na mesma transação).
        Não há validação de formato de e-mail nem de inscrição duplicada.
        """
        def work(session: Session) -> Result:
            if _locked_event(session, draft.event_id) is None:
                return _event_not_found(draft.event_id)

            attendee = Attendee(name=draft.name, email=draft.email, event_id=draft.event_id)
            session.add(attendee)
            session.flush()

            logger.debug(f"Inscrição criada: id={attendee.id}, event_id={attendee.event_id}")
            return Success(_attendee_record(attendee))

        return self._execute("create_attendee", "Failed to create attendee", work)
