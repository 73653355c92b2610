"""FastAPI application package."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi import FastAPI


def get_app() -> "FastAPI":
    """Return the FastAPI application without importing it eagerly.

    Alembic and the command line scripts import ``backend.app`` and do not
    need the routers or the scheduler wiring.
    """

    from .main import app as fastapi_app

    return fastapi_app


__all__ = ["get_app"]
