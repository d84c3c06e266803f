# app/routers/auth_routes.py

from typing import Optional

from fastapi import APIRouter

from app.errors import ValidationError
from app.schemas import LoginRequest

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


# No session is created: the front end keeps the email and sends it back
# in the X-User-Email header.
@router.post("/login")
def login(body: Optional[LoginRequest] = None):
    body = body or LoginRequest()
    if not body.email:
        raise ValidationError("email required")
    return {"email": body.email}
