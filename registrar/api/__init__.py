"""
API module: the REST surface over the Registrar services.
"""

from .rest_api import RegistrarRestAPI, get_session, status_code_for

__all__ = [
    "RegistrarRestAPI",
    "get_session",
    "status_code_for",
]
