"""
Event Horizon: API de eventos e inscrições sobre SQL Server.
"""

__version__ = "0.1.0"
