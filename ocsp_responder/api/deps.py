from fastapi import Request

from ocsp_responder.core.config import Settings
from ocsp_responder.services.responder import StatusResponder
from ocsp_responder.services.revocation_store import RevocationStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> RevocationStore:
    return request.app.state.store


def get_responder(request: Request) -> StatusResponder:
    return request.app.state.responder
