"""
HTTP handlers for the timer-driven jobs.

Each endpoint runs one stage against the database with service-role
credentials taken from the environment. The request body is ignored.
Responses are ``{"success": true, "results": ..., "timestamp": ...}`` or,
on an unexpected error, HTTP 500 with ``{"error": "..."}``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from academy.config import AppConfig, load_config_from_env
from academy.freezes import resume_expired_freezes
from academy.logging_config import setup_logging
from academy.notifications.scheduler import schedule_notifications
from academy.notifications.sender import send_notifications
from db.database import create_service_client, error_message

setup_logging()
logger = logging.getLogger(__name__)

Stage = Callable[[AppConfig, Any, datetime], Dict[str, Any]]


def get_config_loader() -> Callable[[], AppConfig]:
    return load_config_from_env


def get_client_factory() -> Callable[[Any], Any]:
    return lambda cfg: create_service_client(cfg.supabase)


def get_clock() -> Callable[[], datetime]:
    return lambda: datetime.now(timezone.utc)


app = FastAPI(
    title="Sports Academy Jobs",
    description="Notification scheduling/delivery and membership auto-resume.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


def _run(name: str, stage: Stage, load_config, connect, clock):
    try:
        cfg = load_config()
        client = connect(cfg)
        now = clock()
        results = stage(cfg, client, now)
    except Exception as e:
        logger.error("Error in %s: %s", name, e, exc_info=True)
        return JSONResponse(status_code=500, content={"error": error_message(e)})

    return {"success": True, "results": results, "timestamp": clock().isoformat()}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.post("/schedule-notifications")
def schedule_notifications_endpoint(
    load_config=Depends(get_config_loader),
    connect=Depends(get_client_factory),
    clock=Depends(get_clock),
):
    return _run(
        "schedule-notifications",
        lambda cfg, client, now: schedule_notifications(client, now),
        load_config, connect, clock,
    )


@app.post("/send-notifications")
def send_notifications_endpoint(
    load_config=Depends(get_config_loader),
    connect=Depends(get_client_factory),
    clock=Depends(get_clock),
):
    return _run(
        "send-notifications",
        lambda cfg, client, now: send_notifications(client, cfg, now),
        load_config, connect, clock,
    )


@app.post("/auto-resume-memberships")
def auto_resume_memberships_endpoint(
    load_config=Depends(get_config_loader),
    connect=Depends(get_client_factory),
    clock=Depends(get_clock),
):
    return _run(
        "auto-resume-memberships",
        lambda cfg, client, now: resume_expired_freezes(client, now),
        load_config, connect, clock,
    )
