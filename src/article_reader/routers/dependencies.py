"""Shared router dependencies."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException, Request

from ..errors import ReaderError
from ..services.device_bridge import DeviceConnectionManager
from ..services.reader_session import ReaderSession


def get_reader_session(request: Request) -> ReaderSession:
    session = getattr(request.app.state, "reader_session", None)
    if session is None:  # pragma: no cover - defensive
        raise RuntimeError("Reader session is not configured")
    return session


def get_device_manager(request: Request) -> DeviceConnectionManager:
    manager = getattr(request.app.state, "device_manager", None)
    if manager is None:  # pragma: no cover - defensive
        raise RuntimeError("Device manager is not configured")
    return manager


@contextmanager
def reader_errors() -> Iterator[None]:
    """Translate reader errors into HTTP responses."""
    try:
        yield
    except ReaderError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


__all__ = ["get_device_manager", "get_reader_session", "reader_errors"]
