"""
Shared dependencies for the API routers.

Services live on the ServiceContainer stored in application state, so each
app instance (including test apps) carries its own wiring.
"""

from fastapi import Request

from pds.services.account_service import AccountService
from pds.services.container import ServiceContainer
from pds.services.document_service import DocumentService


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_account_service(request: Request) -> AccountService:
    return get_container(request).account_service


def get_document_service(request: Request) -> DocumentService:
    return get_container(request).document_service
