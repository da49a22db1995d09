from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ocsp_responder import __version__
from ocsp_responder.api import ocsp, revocations
from ocsp_responder.core.config import Settings, get_settings
from ocsp_responder.core.errors import ResponderError, status_code_for
from ocsp_responder.core.logging import configure_logging, get_logger
from ocsp_responder.services.key_material import load_key_material
from ocsp_responder.services.responder import StatusResponder
from ocsp_responder.services.revocation_store import RevocationStore
from ocsp_responder.services.signer import CryptographyCodec

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RevocationStore] = None,
    responder: Optional[StatusResponder] = None,
) -> FastAPI:
    """
    Build the application.

    A store or responder passed in is used as is (and not torn down);
    otherwise both are created from settings at startup. Failing to open
    the store or load key material aborts startup.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_store = app.state.store is None
        if owns_store:
            app.state.store = RevocationStore(
                database_url=settings.DATABASE_URL,
                timeout=settings.DATABASE_TIMEOUT_SECONDS,
            )
            app.state.store.init()

        try:
            if app.state.responder is None:
                app.state.responder = StatusResponder(
                    store=app.state.store,
                    codec=CryptographyCodec(settings.OCSP_SIGNATURE_HASH),
                    keys=load_key_material(settings),
                    next_update_seconds=settings.OCSP_NEXT_UPDATE_SECONDS,
                )
            logger.info(f"{settings.PROJECT_NAME} {__version__} ready")
            yield
        finally:
            if owns_store:
                app.state.store.teardown()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="OCSP responder for a single certificate authority",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.responder = responder

    @app.exception_handler(ResponderError)
    async def responder_error_handler(request: Request, exc: ResponderError):
        if exc.is_rejection:
            logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
            detail = exc.message
        else:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
            detail = "Internal server error"
        return JSONResponse(status_code=status_code_for(exc.kind), content={"detail": detail})

    app.include_router(ocsp.router)
    app.include_router(revocations.router)

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        return {"status": "healthy"}

    return app


def run():
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
