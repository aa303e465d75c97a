import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .dates import parse_timestamp
from .models import (
    AttendeeDraft,
    ErrorKind,
    EventChanges,
    EventDraft,
    Failure,
    MAX_ROW_ID,
    Result,
    Success,
)

logger = logging.getLogger(__name__)

EVENT_FIELDS = ("name", "date", "location")
ATTENDEE_FIELDS = ("name", "email", "eventId")
MAX_TEXT_LENGTH = 100
MAX_EMAIL_LENGTH = 255


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def missing_fields(payload: Mapping[str, Any], required: Sequence[str]) -> List[str]:
    """
    Retorna os campos obrigatórios ausentes, nulos ou vazios, na ordem declarada.
    """
    return [name for name in required if _is_blank(payload.get(name))]


def _bad_text(
    payload: Mapping[str, Any],
    names: Sequence[str],
    max_length: Optional[int] = MAX_TEXT_LENGTH,
) -> List[str]:
    """
    Campos presentes que não são texto ou que excedem o tamanho máximo.
    """
    bad = []
    for name in names:
        if name not in payload:
            continue
        value = payload[name]
        if not isinstance(value, str):
            bad.append(name)
        elif max_length is not None and len(value) > max_length:
            bad.append(name)
    return bad


def _missing(fields: List[str]) -> Failure:
    return Failure(ErrorKind.VALIDATION, "Missing fields", fields=fields)


def _invalid(fields: List[str]) -> Failure:
    return Failure(ErrorKind.VALIDATION, "Invalid fields", fields=fields)


def _invalid_date() -> Failure:
    return Failure(ErrorKind.VALIDATION, "Invalid date", fields=["date"])


def validate_new_event(payload: Mapping[str, Any]) -> Result:
    missing = missing_fields(payload, EVENT_FIELDS)
    if missing:
        logger.debug(f"Evento rejeitado por campos ausentes: fields={missing}")
        return _missing(missing)

    bad_text = _bad_text(payload, ("name", "location"))
    if bad_text:
        return _invalid(bad_text)

    date = parse_timestamp(payload["date"])
    if date is None:
        logger.debug(f"Evento rejeitado por data inválida: date={payload['date']!r}")
        return _invalid_date()

    return Success(
        EventDraft(
            name=payload["name"],
            date=date,
            location=payload["location"],
        )
    )


def validate_event_changes(payload: Mapping[str, Any]) -> Result:
    """
    Valida uma atualização parcial: apenas campos enviados (não nulos) são checados.
    Um campo enviado vazio é rejeitado, pois o evento não pode perder nome, data ou local.
    """
    supplied: Dict[str, Any] = {k: payload.get(k) for k in EVENT_FIELDS if payload.get(k) is not None}

    blank = [name for name, value in supplied.items() if _is_blank(value)]
    bad_text = _bad_text(supplied, ("name", "location"))
    if blank or bad_text:
        return _invalid(blank + bad_text)

    date = None
    if "date" in supplied:
        date = parse_timestamp(supplied["date"])
        if date is None:
            return _invalid_date()

    return Success(
        EventChanges(
            name=supplied.get("name"),
            date=date,
            location=supplied.get("location"),
        )
    )


def _coerce_event_id(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.strip().isdecimal():
        value = int(raw.strip())
    else:
        return None
    return value if 1 <= value <= MAX_ROW_ID else None


def validate_new_attendee(payload: Mapping[str, Any]) -> Result:
    missing = missing_fields(payload, ATTENDEE_FIELDS)
    if missing:
        return _missing(missing)

    bad_text = _bad_text(payload, ("name",)) + _bad_text(payload, ("email",), max_length=MAX_EMAIL_LENGTH)
    if bad_text:
        return _invalid(bad_text)

    event_id = _coerce_event_id(payload["eventId"])
    if event_id is None:
        return _invalid(["eventId"])

    return Success(
        AttendeeDraft(
            name=payload["name"],
            email=payload["email"],
            event_id=event_id,
        )
    )
