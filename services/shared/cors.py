"""CORS configuration for the portal API.

- Development: any origin (``*``), no credentials.
- Production: ``CORS_ORIGINS`` (comma separated) or, when unset, the public
  URL of the web app the e-mails link to.
"""

from __future__ import annotations

import os
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import _is_production


def get_cors_origins(public_url: Optional[str] = None) -> List[str]:
    if not _is_production():
        return ["*"]

    raw = os.getenv("CORS_ORIGINS", "").strip() or (public_url or "").strip()
    origins = [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]
    if not origins:
        raise ValueError(
            "CORS_ORIGINS (ou PUBLIC_APP_URL) deve estar definido em produção, "
            "ex.: CORS_ORIGINS=https://app.example.com,https://admin.example.com"
        )
    return origins


def configure_cors(app: FastAPI, public_url: Optional[str] = None) -> None:
    origins = get_cors_origins(public_url)
    # com "*" o navegador recusa credenciais de qualquer forma
    allow_credentials = origins != ["*"] and os.getenv("CORS_ALLOW_CREDENTIALS", "true").lower() == "true"

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
        max_age=int(os.getenv("CORS_MAX_AGE", "600")),
    )
