from sqlalchemy import Column, DateTime, ForeignKey, Integer, Unicode
from .database import Base


class Event(Base):
    """
    Evento cadastrado (nome, data/hora UTC e local).
    """
    __tablename__ = "Events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Unicode(100), nullable=False)
    date = Column(DateTime, nullable=False, index=True)
    location = Column(Unicode(100), nullable=False)


class Attendee(Base):
    """
    Inscrição de uma pessoa em um evento.
    """
    __tablename__ = "Attendees"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Unicode(100), nullable=False)
    email = Column(Unicode(255), nullable=False)
    event_id = Column("eventId", Integer, ForeignKey("Events.id"), nullable=False, index=True)
