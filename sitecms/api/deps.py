"""Shared FastAPI dependencies: objects built once at startup and kept on app.state."""
from fastapi import Request

from ..apps.service import AppsService
from ..config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_apps_service(request: Request) -> AppsService:
    return request.app.state.apps_service
