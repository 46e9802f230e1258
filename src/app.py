import json
from datetime import datetime
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.infra.config.settings import settings
from src.core.logger.logger import logger
from src.api.router import health, ai, users, templates, apps, system, feedback, telegram
from src.api.middleware.security.rate_limiter import RateLimitMiddleware
from src.api.middleware.logging.request_logging import RequestLoggingMiddleware
from src.core.exceptions.handler import ServiceError, GlobalErrorHandler
from src.core.dependencies import get_notification_service
from src.infra.config.redis import close_redis
from src.infra.database import get_database_manager


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="""
Web4Apps API - wallet-authenticated app builder with AI-assisted content generation.

## Services
- **Users**: wallet registration and creator leaderboard
- **Templates**: JSON Schema templates, published after moderation
- **Apps**: apps built from templates with schema-validated data
- **AI**: challenge-gated prompt processing with a daily quota
- **Moderation**: Telegram bot webhook for moderators

## Authentication
Callers identify with the `X-Wallet-Address` header; every state-changing
request carries an EIP-191 signature made by that wallet.
        """,
        version=settings.APP_VERSION,
        docs_url="/",
        redoc_url="/redoc",
        servers=[
            {
                "url": f"http://localhost:{settings.PORT}",
                "description": "Development server"
            }
        ]
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
        max_age=600,  # 10 minutes
    )

    # Request logging middleware (should be first to catch all requests)
    app.add_middleware(RequestLoggingMiddleware)

    # Rate limiting middleware
    app.add_middleware(RateLimitMiddleware)

    # Add centralized error handlers
    app.add_exception_handler(ServiceError, GlobalErrorHandler.service_error_handler)
    app.add_exception_handler(StarletteHTTPException, GlobalErrorHandler.http_exception_handler)
    app.add_exception_handler(RequestValidationError, GlobalErrorHandler.validation_error_handler)
    app.add_exception_handler(Exception, GlobalErrorHandler.general_exception_handler)

    # Include routers
    app.include_router(health.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    app.include_router(templates.router, prefix="/api")
    app.include_router(apps.router, prefix="/api")
    app.include_router(ai.router, prefix="/api")
    app.include_router(system.router, prefix="/api")
    app.include_router(feedback.router, prefix="/api")
    app.include_router(telegram.router, prefix="/api")

    @app.on_event("startup")
    async def startup_event():
        logger.info(json.dumps({
            "message": "Starting Web4Apps API",
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION
        }))

        await get_database_manager().create_all()

        if not settings.OPENAI_API_KEY:
            logger.warning("OPENAI_API_KEY not set - AI content generation disabled")
        if not settings.TELEGRAM_MODERATION_CHAT_ID:
            logger.warning("TELEGRAM_MODERATION_CHAT_ID not set - moderation commands disabled")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info(json.dumps({
            "message": "Shutting down Web4Apps API",
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION
        }))

        await get_notification_service().close()
        await get_database_manager().close()
        try:
            await close_redis()
        except Exception as e:
            logger.error(f"Failed to close Redis pool: {str(e)}")

    return app
