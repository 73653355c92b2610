"""FastAPI application: routers, CORS and the notification scheduler lifecycle."""

import logging
import os
import re
from contextlib import asynccontextmanager
from typing import Iterable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .database import SessionLocal
from .migrations import run_database_migrations
from .routers import (
    alerts_router,
    analytics_router,
    clients_router,
    interactions_router,
    metrics_router,
    notification_rules_router,
    projects_router,
    subscription_services_router,
    subscriptions_router,
)
from .services import (
    JOB_NOTIFICATION_RULES,
    NotificationScheduler,
    NotificationService,
    SchedulerMonitor,
    read_interval_minutes,
)

LOGGER = logging.getLogger(__name__)

API_PREFIX = "/api"
SCHEDULER_ENV_FLAG = "ENABLE_NOTIFICATION_SCHEDULER"
ORIGINS_ENV = "BACKEND_ALLOWED_ORIGINS"

# Dashboard dev servers; always allowed so local work needs no configuration.
LOCAL_DEVELOPMENT_ORIGINS = {"http://localhost:5173", "http://localhost:8080"}
LOCALHOST_ORIGIN_REGEX = r"https?://(localhost|127\.0\.0\.1|0\.0\.0\.0)(:\d+)?$"
DEFAULT_ALLOWED_ORIGINS = LOCAL_DEVELOPMENT_ORIGINS | {
    "http://127.0.0.1:5173",
    "http://127.0.0.1:8080",
}


def parse_origins(raw_value: str) -> list[str]:
    """Split on commas or whitespace and drop trailing slashes, keeping order."""

    origins: list[str] = []
    for token in re.split(r"[\s,]+", raw_value):
        origin = token.strip().rstrip("/")
        if origin and origin not in origins:
            origins.append(origin)
    return origins


def resolve_allowed_origins(raw_value: Optional[str] = None) -> list[str]:
    """Configured origins (or the defaults) plus the local development ones."""

    if raw_value is None:
        raw_value = os.getenv(ORIGINS_ENV, "")
    configured: Iterable[str] = parse_origins(raw_value) or DEFAULT_ALLOWED_ORIGINS
    return sorted(set(configured) | LOCAL_DEVELOPMENT_ORIGINS)


def _scheduler_enabled() -> bool:
    raw = os.getenv(SCHEDULER_ENV_FLAG)
    if raw is None:
        return True
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def ensure_database_is_ready() -> None:
    LOGGER.info("Ensuring database schema is up to date before serving requests")
    run_database_migrations()


def start_background_jobs(service: NotificationService) -> Optional[NotificationScheduler]:
    """Start the notification scheduler unless it is disabled."""

    enabled = _scheduler_enabled()
    SchedulerMonitor.set_job_enabled(JOB_NOTIFICATION_RULES, enabled)
    if not enabled:
        LOGGER.info("%s disabled via %s", JOB_NOTIFICATION_RULES, SCHEDULER_ENV_FLAG)
        return None
    scheduler = NotificationScheduler(service, read_interval_minutes())
    scheduler.start()
    return scheduler


def stop_background_jobs(scheduler: Optional[NotificationScheduler]) -> None:
    if scheduler is not None:
        scheduler.stop()


@asynccontextmanager
async def lifespan(application: FastAPI):
    ensure_database_is_ready()
    service = NotificationService(SessionLocal)
    application.state.notification_service = service
    application.state.notification_scheduler = start_background_jobs(service)
    try:
        yield
    finally:
        stop_background_jobs(application.state.notification_scheduler)


app = FastAPI(title="Opsboard API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=resolve_allowed_origins(),
    allow_origin_regex=LOCALHOST_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router, path, tag in (
    (clients_router, "clients", "clients"),
    (projects_router, "projects", "projects"),
    (interactions_router, "interactions", "interactions"),
    (subscriptions_router, "subscriptions", "subscriptions"),
    (subscription_services_router, "subscription-services", "subscriptions"),
    (alerts_router, "alerts", "alerts"),
    (notification_rules_router, "notification-rules", "notification-rules"),
    (analytics_router, "analytics", "analytics"),
    (metrics_router, "metrics", "metrics"),
):
    app.include_router(router, prefix=f"{API_PREFIX}/{path}", tags=[tag])


@app.get("/", tags=["health"])
def read_root() -> dict[str, str]:
    return {"status": "ok"}
