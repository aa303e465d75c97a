import logging
import os
import time
from contextlib import asynccontextmanager
from uuid import uuid4
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel
from ..config import AppConfig
from ..core.dates import format_timestamp
from ..core.models import (
    AttendeeRecord,
    DeletedEvent,
    ErrorKind,
    EventRecord,
    Failure,
    Result,
)
from ..core.validation import (
    validate_event_changes,
    validate_new_attendee,
    validate_new_event,
)
from ..storage.database import Database
from ..storage.repository import AttendeeRepository, EventRepository

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.DATABASE: 500,
    ErrorKind.UNAVAILABLE: 503,
}


class EventCreateRequest(BaseModel):
    name: Optional[str] = None
    date: Optional[str] = None
    location: Optional[str] = None


class EventUpdateRequest(BaseModel):
    name: Optional[str] = None
    date: Optional[str] = None
    location: Optional[str] = None


class AttendeeCreateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    eventId: Optional[Union[int, str]] = None


class EventResponse(BaseModel):
    id: int
    name: str
    date: str
    location: str

    @classmethod
    def from_record(cls, record: EventRecord) -> "EventResponse":
        return cls(
            id=record.id,
            name=record.name,
            date=format_timestamp(record.date),
            location=record.location,
        )


class AttendeeResponse(BaseModel):
    id: int
    name: str
    email: str
    eventId: int

    @classmethod
    def from_record(cls, record: AttendeeRecord) -> "AttendeeResponse":
        return cls(id=record.id, name=record.name, email=record.email, eventId=record.event_id)


class DeleteEventResponse(BaseModel):
    message: str
    event: EventResponse
    attendeesRemoved: int


class ErrorResponse(BaseModel):
    error: str
    fields: Optional[List[str]] = None
    details: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    database: str
    dbConnected: bool


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware que gera request_id único para cada requisição
    e adiciona aos logs e headers de resposta.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = uuid4().hex[:16]  # 16 caracteres hexadecimais
        request.state.request_id = request_id

        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Request processado: request_id={request_id}, "
            f"method={request.method}, path={request.url.path}, "
            f"status={response.status_code}, duration_ms={duration_ms:.2f}"
        )

        return response


def _body(payload: Optional[BaseModel]) -> Dict[str, Any]:
    return payload.model_dump() if payload is not None else {}


def create_app(
    config: Optional[AppConfig] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Cria a aplicação FastAPI e injeta dependências principais
    (config + pool de conexões + repositórios).
    """
    config = config or AppConfig.load_from_env()
    database = database or Database(config)
    events = EventRepository(database)
    attendees = AttendeeRepository(database)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.start()
        logger.info("Aplicação pronta: conexão com o banco em andamento")
        yield
        database.close()
        logger.info("Aplicação encerrada")

    app = FastAPI(
        title="Event Horizon API",
        version="0.1.0",
        description="API de eventos e inscrições.",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.database = database
    app.state.events = events
    app.state.attendees = attendees

    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type"],
    )

    def failure_response(failure: Failure) -> JSONResponse:
        body = ErrorResponse(error=failure.message, fields=failure.fields or None)
        if failure.detail and not config.is_production:
            body.details = failure.detail
        return JSONResponse(
            status_code=STATUS_BY_KIND[failure.kind],
            content=body.model_dump(exclude_none=True),
        )

    def respond(result: Result, render, status_code: int = 200) -> JSONResponse:
        if isinstance(result, Failure):
            return failure_response(result)
        return JSONResponse(status_code=status_code, content=render(result.value))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields: List[str] = []
        for err in exc.errors():
            loc = err.get("loc") or ("body",)
            # ("body", "eventId", "int"): o nome do campo vem logo após a origem
            name = str(loc[1]) if len(loc) > 1 else str(loc[0])
            if name not in fields:
                fields.append(name)
        logger.info(f"Corpo de requisição inválido: path={request.url.path}, fields={fields}")
        return failure_response(
            Failure(ErrorKind.VALIDATION, "Invalid request body", fields=fields)
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        request_id = getattr(request.state, "request_id", "unknown")
        logger.error(
            f"Erro inesperado: request_id={request_id}, path={request.url.path}, "
            f"error={type(exc).__name__}: {exc}",
            exc_info=exc,
        )
        body = {"error": "Internal server error"}
        if not config.is_production:
            body["details"] = str(exc)
        return JSONResponse(status_code=500, content=body)

    def health_check() -> HealthResponse:
        """
        Endpoint de health check para monitoramento.
        """
        db_ok = database.ping()
        return HealthResponse(
            status="ok" if db_ok else "degraded",
            database="connected" if db_ok else "disconnected",
            dbConnected=db_ok,
        )

    app.add_api_route("/", health_check, methods=["GET"], response_model=HealthResponse)
    app.add_api_route("/health", health_check, methods=["GET"], response_model=HealthResponse)

    router = APIRouter()

    def render_events(records: List[EventRecord]) -> List[Dict[str, Any]]:
        return [EventResponse.from_record(r).model_dump() for r in records]

    def render_event(record: EventRecord) -> Dict[str, Any]:
        return EventResponse.from_record(record).model_dump()

    def render_deleted(deleted: DeletedEvent) -> Dict[str, Any]:
        return DeleteEventResponse(
            message="Deleted",
            event=EventResponse.from_record(deleted.event),
            attendeesRemoved=deleted.attendees_removed,
        ).model_dump()

    def render_attendees(records: List[AttendeeRecord]) -> List[Dict[str, Any]]:
        return [AttendeeResponse.from_record(r).model_dump() for r in records]

    def render_attendee(record: AttendeeRecord) -> Dict[str, Any]:
        return AttendeeResponse.from_record(record).model_dump()

    @router.get("/events", response_model=List[EventResponse])
    def list_events():
        return respond(events.list_events(), render_events)

    @router.post("/events", response_model=EventResponse, status_code=201)
    def create_event(payload: Optional[EventCreateRequest] = None):
        validated = validate_new_event(_body(payload))
        if isinstance(validated, Failure):
            return failure_response(validated)
        return respond(events.create_event(validated.value), render_event, status_code=201)

    @router.put("/events/{event_id}", response_model=EventResponse)
    def update_event(event_id: int, payload: Optional[EventUpdateRequest] = None):
        validated = validate_event_changes(_body(payload))
        if isinstance(validated, Failure):
            return failure_response(validated)
        return respond(events.update_event(event_id, validated.value), render_event)

    @router.delete("/events/{event_id}", response_model=DeleteEventResponse)
    def delete_event(event_id: int):
        return respond(events.delete_event(event_id), render_deleted)

    @router.get("/events/{event_id}/attendees", response_model=List[AttendeeResponse])
    def list_event_attendees(event_id: int):
        return respond(attendees.list_attendees(event_id=event_id), render_attendees)

    @router.get("/attendees", response_model=List[AttendeeResponse])
    def list_attendees(eventId: Optional[int] = None):
        return respond(attendees.list_attendees(event_id=eventId), render_attendees)

    @router.post("/attendees", response_model=AttendeeResponse, status_code=201)
    def create_attendee(payload: Optional[AttendeeCreateRequest] = None):
        validated = validate_new_attendee(_body(payload))
        if isinstance(validated, Failure):
            return failure_response(validated)
        return respond(attendees.create_attendee(validated.value), render_attendee, status_code=201)

    app.include_router(router)
    app.include_router(router, prefix="/api")

    if config.static_dir and os.path.isdir(config.static_dir):
        # Front-end compilado (SPA): index.html como fallback
        app.mount("/ui", StaticFiles(directory=config.static_dir, html=True), name="ui")
        logger.info(f"Servindo front-end estático: dir={config.static_dir}")

    return app
