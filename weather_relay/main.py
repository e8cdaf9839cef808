"""FastAPI application setup, CORS policy and static file serving for the weather relay."""

from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import Response
from starlette.types import Message, Send

from .api import router as api_router
from .config import Settings, settings as default_settings
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="weather_relay/main")


# Headers that grant access; only allow-listed origins may see them.
GRANT_HEADERS = ("Access-Control-Allow-Credentials", "Access-Control-Expose-Headers")


class AllowListCORSMiddleware(CORSMiddleware):
    """CORSMiddleware that sends no grant headers at all to origins off the allow-list.

    Starlette attaches Access-Control-Allow-Credentials to every cross-origin
    response, even when it withholds Access-Control-Allow-Origin.
    """

    async def send(self, message: Message, send: Send, request_headers: Headers) -> None:
        if self.is_allowed_origin(origin=request_headers["Origin"]):
            await super().send(message, send, request_headers)
            return

        async def send_without_grants(msg: Message) -> None:
            if msg["type"] == "http.response.start":
                _strip_grants(MutableHeaders(scope=msg))
            await send(msg)

        await super().send(message, send_without_grants, request_headers)

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if not self.is_allowed_origin(origin=request_headers["Origin"]):
            _strip_grants(response.headers)
        return response


def _strip_grants(headers: MutableHeaders) -> None:
    for name in GRANT_HEADERS:
        if name in headers:
            del headers[name]


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the relay app from explicit settings (defaults to the environment)."""
    settings = settings or default_settings
    static_dir = Path(settings.static_dir).resolve()

    app = FastAPI(title="Weather Relay")
    app.state.settings = settings

    app.add_middleware(
        AllowListCORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # API routes first; the static mount at "/" matches every path.
    app.include_router(api_router)
    app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    logger.info(
        "Weather relay configured",
        extra={"upstream_url": settings.upstream_url, "static_dir": str(static_dir),
               "cors_origins": settings.cors_origins},
    )
    return app


app = create_app()
