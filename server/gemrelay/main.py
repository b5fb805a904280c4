import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi import APIRouter
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import Settings
from .api.chat import router as chat_router
from .api.quote import router as quote_router
from .core.form_relay import FormRelay
from .core.logging import setup_logging
from .providers.base import ChatProvider
from .providers.gemini import GeminiProvider

logger = logging.getLogger(__name__)


def _describe_validation_error(exc: RequestValidationError) -> str:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        problems.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(problems) or "Invalid request"


def create_app(
    settings: Optional[Settings] = None,
    chat_provider: Optional[ChatProvider] = None,
    form_relay: Optional[FormRelay] = None,
) -> FastAPI:
    settings = settings or Settings()
    # Setup logging early
    setup_logging(settings.log_level)
    app = FastAPI(title="gemrelay", version=__version__)

    # Built once; handlers only ever read these
    app.state.settings = settings
    app.state.chat_provider = chat_provider or GeminiProvider(settings)
    app.state.form_relay = form_relay or FormRelay(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _describe_validation_error(exc)
        logger.warning("%s rejected: %s", request.url.path, message)
        return JSONResponse(status_code=400, content={"error": message})

    api = APIRouter()
    api.include_router(chat_router)
    api.include_router(quote_router)
    app.include_router(api, prefix="/api")

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.get("/")
    def root():
        return {"service": "gemrelay", "version": __version__}

    logger.info("gemrelay ready origin=%s model=%s", settings.frontend_url, settings.gemini_model)
    return app


app = create_app()
