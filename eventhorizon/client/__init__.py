"""
Camada de dados do cliente: chamadas HTTP à API e estado local da tela.
"""

from .api_client import ApiError, EventHorizonClient
from .board import EventBoard

__all__ = ["ApiError", "EventHorizonClient", "EventBoard"]
