"""
FastAPI wiring shared by every service's ``create_app``.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from joke_common.config.settings import BrokerSettings
from joke_common.monitoring.metrics import mount_metrics


def configure_app(app: FastAPI, settings: BrokerSettings) -> FastAPI:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS if not settings.DEBUG else ["*"],
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS if not settings.DEBUG else ["*"],
    )
    mount_metrics(app, settings.METRICS_ENABLED)
    return app


def broker_state(connected: bool) -> str:
    return "connected" if connected else "disconnected"


def supervisor_state(app: FastAPI) -> str:
    """``running``, ``failed`` or ``stopped`` for the lifespan's broker supervisor."""
    supervisor = getattr(app.state, "supervisor", None)
    if supervisor is None:
        return "not started"
    return supervisor.state


def health_status(app: FastAPI) -> str:
    return "degraded" if supervisor_state(app) == "failed" else "healthy"
