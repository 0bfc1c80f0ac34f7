from fastapi import Request

from summer.services.registry import Services
from summer.utils.config import Settings


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
