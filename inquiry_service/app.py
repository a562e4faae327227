"""Event Inquiry Service - FastAPI backend for the contact form and admin inbox."""

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from inquiry_service.shared.admin.auth import AdminSessionGate
from inquiry_service.shared.admin.routes import router as admin_router
from inquiry_service.shared.background import start_background_tasks, stop_background_tasks
from inquiry_service.shared.contact.database import (
    check_schema,
    create_db_engine,
    create_session_factory,
    init_db,
    probe,
)
from inquiry_service.shared.contact.email_utils import NotificationDispatcher, SmtpTransport
from inquiry_service.shared.contact.routes import router as contact_router
from inquiry_service.shared.health.routes import router as health_router
from inquiry_service.shared.security.headers import apply_security_headers
from inquiry_service.shared.security.ip_reputation import IPReputationTracker
from inquiry_service.shared.security.rate_limit import build_rate_limiters
from inquiry_service.shared.security.stages import build_pipelines
from inquiry_service.shared.settings import Settings


def create_app(settings: Settings = None, transport=None) -> FastAPI:
    """
    Build an independent application: its own engine, limiters, reputation
    tracker and admission pipelines.

    Args:
        settings: Configuration (read from the environment when omitted)
        transport: Email transport with send(to, subject, html_body, text_body);
            defaults to SMTP from settings
    """
    settings = settings or Settings()

    app = FastAPI(
        title="Event Inquiry Service",
        description="Contact form and admin inbox for an event-management business",
        version="0.1.0",
    )

    engine = create_db_engine(settings.database_url)
    if transport is None:
        transport = SmtpTransport(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            from_address=settings.EMAIL_FROM,
            from_name=settings.EMAIL_FROM_NAME,
        )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.limiters = build_rate_limiters()
    app.state.tracker = IPReputationTracker()
    app.state.gate = AdminSessionGate(settings.ADMIN_USERNAME, settings.ADMIN_PASSWORD)
    app.state.notifier = NotificationDispatcher(transport, settings.EMAIL_FROM_NAME, settings.BUSINESS_PHONE)
    app.state.pipelines = build_pipelines(settings, app.state.limiters, app.state.tracker, app.state.gate)
    app.state.background_tasks = []

    @app.on_event("startup")
    async def startup_event():
        try:
            init_db(engine)
            probe(engine)
            check_schema(engine)
            logging.info("Database initialization completed on startup")
        except Exception as e:
            # Log error but don't crash the app; /api/health reports the store state
            logging.error(f"Database initialization error on startup: {str(e)}")
        app.state.background_tasks = start_background_tasks(app)

    @app.on_event("shutdown")
    async def shutdown_event():
        await stop_background_tasks(app.state.background_tasks)
        app.state.background_tasks = []
        engine.dispose()

    app.include_router(contact_router)
    app.include_router(admin_router)
    app.include_router(health_router)

    @app.middleware("http")
    async def security_headers_middleware(request: Request, call_next):
        response = await call_next(request)
        return apply_security_headers(request, response)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Dict details (including admission rejections) become the JSON body as-is."""
        if isinstance(exc.detail, dict):
            content = exc.detail
        elif isinstance(exc.detail, str):
            content = {"detail": exc.detail}
        else:
            content = {"detail": str(exc.detail)}

        return JSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = jsonable_encoder(exc.errors())
        message = errors[0].get("msg", "Invalid input") if errors else "Invalid input"
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed", "message": message, "details": errors},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logging.error(f"Unhandled exception: {str(exc)}", exc_info=True)

        content = {"error": "Internal server error"}
        if settings.is_production:
            content["message"] = "An unexpected error occurred. Please try again later."
        else:
            content["message"] = str(exc)
            content["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)

        # Runs outside the header middleware
        return apply_security_headers(request, JSONResponse(status_code=500, content=content))

    return app


def main() -> None:
    import uvicorn

    settings = Settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("inquiry_service.app:create_app", factory=True, host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    main()
