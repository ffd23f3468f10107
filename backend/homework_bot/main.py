from contextlib import asynccontextmanager
from fastapi import FastAPI
from .platform.brand import BRAND_APP_DESCRIPTION, BRAND_NAME
from .platform.config import settings
from .platform.logging import setup_logging
from .platform.middleware import RequestLoggingMiddleware

# Set up logging
logger = setup_logging()

_is_production = settings.DEPLOYMENT_ENV == "production"


def _is_configured_secret(value: str | None) -> bool:
    cleaned = (value or "").strip().lower()
    return cleaned not in {"", "skip", "changeme"}


def _start_poller():
    from .domains.adapters import build_batch_runner
    from .tasks.poller import HomeworkPoller

    poller = HomeworkPoller(lambda: build_batch_runner().poll(), settings.POLL_INTERVAL_SECONDS)
    poller.start()
    return poller


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    # Startup
    logger.info("%s homework bot started | env=%s", BRAND_NAME, settings.DEPLOYMENT_ENV)
    poller = None
    # Without Celery beat the API process drives the poll itself. An interval of 0 disables it.
    if settings.DISABLE_CELERY and settings.POLL_INTERVAL_SECONDS > 0:
        poller = _start_poller()
    yield
    # Shutdown
    if poller is not None:
        poller.stop(timeout=5)


app = FastAPI(
    title=f"{BRAND_NAME} Homework Bot",
    description=BRAND_APP_DESCRIPTION,
    version="1.0.0",
    docs_url=None if _is_production else "/docs",
    openapi_url=None if _is_production else "/openapi.json",
    lifespan=_lifespan,
)

# Request logging
app.add_middleware(RequestLoggingMiddleware)

# Sentry (optional)
if settings.SENTRY_DSN and settings.SENTRY_DSN.startswith("https://"):
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        traces_sample_rate=0.1,
        environment=settings.DEPLOYMENT_ENV,
        integrations=[FastApiIntegration()],
    )

# Include routers
from .domains.webhooks.routes import router as webhooks_router

app.include_router(webhooks_router)


@app.get("/health")
def health_check():
    redis_ok = None
    if not settings.DISABLE_CELERY or settings.candidate_lock_backend == "redis":
        try:
            import redis
            r = redis.from_url(settings.REDIS_URL, socket_connect_timeout=2, socket_timeout=2)
            redis_ok = bool(r.ping())
        except Exception:
            redis_ok = False

    integrations = {
        "recruitee_configured": _is_configured_secret(settings.RECRUITEE_API_TOKEN)
        and _is_configured_secret(settings.RECRUITEE_COMPANY_ID),
        "gitlab_configured": _is_configured_secret(settings.GITLAB_TOKEN)
        and bool(settings.GITLAB_TEMPLATE_NAMESPACE)
        and bool(settings.GITLAB_HOMEWORK_NAMESPACE),
        "listener_webhook_configured": bool(settings.LISTENER_WEBHOOK_URL),
        "resend_configured": _is_configured_secret(settings.RESEND_API_KEY),
    }

    status_str = "degraded" if redis_ok is False else "healthy"
    return {
        "status": status_str,
        "service": "homework-bot",
        "redis": redis_ok,
        "celery": not settings.DISABLE_CELERY,
        "mail_transport": settings.MAIL_TRANSPORT,
        "integrations": integrations,
    }
