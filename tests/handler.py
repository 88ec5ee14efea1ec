"""
Test Exception Handler

Renders JSON:API error documents for requests served by the JSON:API and
falls back to the framework rendering for everything else.
"""

from fastapi import Request
from fastapi.responses import Response

from jsonapi_adapter.errors import HandlesErrors
from jsonapi_adapter.exception_handler import ExceptionHandler


class Handler(HandlesErrors, ExceptionHandler):

    def report(self, exc: Exception) -> None:
        super().report(exc)

    def render(self, request: Request, exc: Exception) -> Response:
        if self.is_json_api(request):
            return self.render_json_api(request, exc)

        return super().render(request, exc)
