import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from .api_client import ApiError, EventHorizonClient

logger = logging.getLogger(__name__)

SUCCESS_BANNER_TTL_S = 3.0


@dataclass
class Banner:
    message: str
    created_at: float


class EventBoard:
    """
    Estado local da tela de eventos (lista, inscritos, banners de erro/sucesso).

    Depois de toda mutação bem-sucedida a lista de eventos é buscada de novo no
    servidor, em vez de ser corrigida localmente. Falhas viram banner de erro;
    não há retry automático.
    """

    def __init__(
        self,
        client: EventHorizonClient,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._clock = clock
        self.events: List[Dict[str, Any]] = []
        self.attendees: List[Dict[str, Any]] = []
        self.selected_event_id: Optional[int] = None
        self.error: Optional[str] = None
        self.loading = False
        self._success: Optional[Banner] = None

    @property
    def success(self) -> Optional[str]:
        banner = self._success
        if banner is None:
            return None
        if self._clock() - banner.created_at >= SUCCESS_BANNER_TTL_S:
            self._success = None
            return None
        return banner.message

    def _set_success(self, message: str) -> None:
        self._success = Banner(message=message, created_at=self._clock())

    def _run(self, action: Callable[[], Any]) -> bool:
        self.loading = True
        self.error = None
        try:
            action()
            return True
        except ApiError as e:
            logger.warning(f"Ação falhou: status={e.status_code}, error={e.message}")
            self.error = e.message
            return False
        finally:
            self.loading = False

    def refresh(self) -> bool:
        def action() -> None:
            self.events = self._client.list_events()

        return self._run(action)

    def submit_event(
        self,
        name: Optional[str],
        date: Optional[str],
        location: Optional[str],
        editing_id: Optional[int] = None,
    ) -> bool:
        """
        Cria (POST) ou, com editing_id, atualiza (PUT) um evento.
        Na atualização, campos vazios ou None ficam de fora do corpo (mantêm o valor).
        """
        self._success = None

        def action() -> None:
            if editing_id is not None:
                self._client.update_event(
                    editing_id,
                    name=name.strip() if name else None,
                    date=date or None,
                    location=location.strip() if location else None,
                )
                self._set_success("Event updated successfully!")
            else:
                self._client.create_event((name or "").strip(), date or "", (location or "").strip())
                self._set_success("Event created successfully!")
            self.events = self._client.list_events()

        return self._run(action)

    def delete_event(self, event_id: int) -> bool:
        self._success = None

        def action() -> None:
            self._client.delete_event(event_id)
            self._set_success("Event deleted successfully!")
            if self.selected_event_id == event_id:
                self.selected_event_id = None
                self.attendees = []
            self.events = self._client.list_events()

        return self._run(action)

    def select_event(self, event_id: int) -> bool:
        def action() -> None:
            self.attendees = self._client.list_attendees(event_id)
            self.selected_event_id = event_id

        return self._run(action)

    def register_attendee(self, name: str, email: str, event_id: Optional[int] = None) -> bool:
        self._success = None
        target = event_id if event_id is not None else self.selected_event_id
        if target is None:
            self.error = "Select an event first"
            return False

        def action() -> None:
            self._client.register_attendee(name.strip(), email.strip(), target)
            self._set_success("Registered successfully!")
            self.attendees = self._client.list_attendees(target)
            self.selected_event_id = target
            self.events = self._client.list_events()

        return self._run(action)
