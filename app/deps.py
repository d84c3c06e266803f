# app/deps.py

from fastapi import Depends, Request

from app.auth import get_current_email
from app.booking import BookingEngine


def get_engine(request: Request) -> BookingEngine:
    return request.app.state.engine


def require_privileged(
    email: str = Depends(get_current_email),
    engine: BookingEngine = Depends(get_engine),
) -> str:
    engine.ensure_privileged(email)
    return email
