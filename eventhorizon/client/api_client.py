import logging
from typing import Any, Dict, List, Optional
import requests

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000/api"


class ApiError(Exception):
    """
    Resposta não-2xx da API (ou falha de transporte, com status_code=None).
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        fields: Optional[List[str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.fields = fields or []


class EventHorizonClient:
    """
    Cliente HTTP da API de eventos.

    Sem cache, sem retry e sem deduplicação: cada chamada é uma requisição.
    `session` aceita qualquer objeto com a interface de requests.Session.request.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout_s: Optional[float] = 10.0,
        session: Any = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._session = session if session is not None else requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = path if path.startswith(("http://", "https://")) else f"{self._base_url}{path}"
        try:
            if self._timeout_s is None:
                resp = self._session.request(method, url, json=json)
            else:
                resp = self._session.request(method, url, json=json, timeout=self._timeout_s)
        except requests.RequestException as e:
            logger.error(f"Falha de rede: method={method}, url={url}, error={e}")
            raise ApiError(str(e)) from e

        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            message = body.get("error") or f"HTTP error! status: {resp.status_code}"
            logger.warning(
                f"Requisição rejeitada: method={method}, url={url}, "
                f"status={resp.status_code}, error={message}"
            )
            raise ApiError(message, status_code=resp.status_code, fields=body.get("fields"))

        return resp.json()

    def health(self) -> Dict[str, Any]:
        root = self._base_url[: -len("/api")] if self._base_url.endswith("/api") else self._base_url
        return self._request("GET", f"{root}/health")

    def list_events(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/events")

    def create_event(self, name: str, date: str, location: str) -> Dict[str, Any]:
        return self._request("POST", "/events", json={"name": name, "date": date, "location": location})

    def update_event(
        self,
        event_id: int,
        name: Optional[str] = None,
        date: Optional[str] = None,
        location: Optional[str] = None,
    ) -> Dict[str, Any]:
        changes = {"name": name, "date": date, "location": location}
        body = {k: v for k, v in changes.items() if v is not None}
        return self._request("PUT", f"/events/{event_id}", json=body)

    def delete_event(self, event_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/events/{event_id}")

    def list_attendees(self, event_id: Optional[int] = None) -> List[Dict[str, Any]]:
        if event_id is not None:
            return self._request("GET", f"/events/{event_id}/attendees")
        return self._request("GET", "/attendees")

    def register_attendee(self, name: str, email: str, event_id: int) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/attendees",
            json={"name": name, "email": email, "eventId": event_id},
        )
