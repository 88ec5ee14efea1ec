"""
JSON:API Request Middleware

Flags requests served by the JSON:API so exception handlers know to render
JSON:API error documents for them.
"""

from starlette.types import ASGIApp, Receive, Scope, Send


class JsonApiMiddleware:
    """Sets request.state.json_api to the API name for paths under the prefix"""

    def __init__(self, app: ASGIApp, prefix: str = "/api/v1", api_name: str = "v1") -> None:
        self.app = app
        self.prefix = prefix.rstrip("/")
        self.api_name = api_name

    def matches(self, path: str) -> bool:
        return path == self.prefix or path.startswith(self.prefix + "/")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and self.matches(scope["path"]):
            scope.setdefault("state", {})["json_api"] = self.api_name
        await self.app(scope, receive, send)
