# app/auth.py

from fastapi import Header

# Callers are identified upstream; the email arrives as a plain header.
USER_HEADER = "X-User-Email"


def get_current_email(x_user_email: str = Header(default="", alias=USER_HEADER)) -> str:
    return x_user_email
