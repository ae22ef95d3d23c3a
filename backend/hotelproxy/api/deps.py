from fastapi import Request

from hotelproxy.core.container import ServiceContainer


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services
