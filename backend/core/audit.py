"""Route-level audit recording.

Routers use ``AuditedRoute`` as their route class; individual routes opt in
with ``dependencies=[audit_log("projects")]``. The wrapper inspects the
response the handler produced and records it after the fact. Gate
rejections raise before a response exists, so they are never recorded.
"""

from typing import Callable

from fastapi import Depends, Request, Response
from fastapi.routing import APIRoute

from backend.services.audit_service import audit_service


class AuditTrail:
    """Marks the current request as audited under ``resource``."""

    def __init__(self, resource: str):
        self.resource = resource

    async def __call__(self, request: Request) -> None:
        request.state.audit_resource = self.resource


def audit_log(resource: str):
    return Depends(AuditTrail(resource))


class AuditedRoute(APIRoute):
    def get_route_handler(self) -> Callable:
        handler = super().get_route_handler()

        async def audited_handler(request: Request) -> Response:
            response = await handler(request)
            resource = getattr(request.state, "audit_resource", None)
            if resource is not None:
                await audit_service.record_response(request, response, resource)
            return response

        return audited_handler
