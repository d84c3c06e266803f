# app/config.py
"""
Application settings read from environment variables.

Defaults are evaluated when this module is imported, so environment
variables must be set before that. Tests build their own ``Settings``
instead of relying on the module-level instance.
"""

import os
from dataclasses import dataclass
from typing import List


@dataclass
class Settings:
    project_name: str = os.getenv("PROJECT_NAME", "Slot Booking API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # "json", "sql" or "memory"
    store_backend: str = os.getenv("BOOKING_STORE", "json")
    data_dir: str = os.getenv("BOOKING_DATA_DIR", "data")
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./booking.db")

    # Comma separated list of emails allowed to create services and slots.
    admin_emails: str = os.getenv("BOOKING_ADMIN_EMAILS", "admin@example.com")

    # Browser front end, mounted at / when the directory exists.
    static_dir: str = os.getenv("BOOKING_STATIC_DIR", "web")

    @property
    def admin_email_list(self) -> List[str]:
        return [e.strip() for e in self.admin_emails.split(",") if e.strip()]


settings = Settings()
