"""CORS middleware configuration."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from contentflow.config import settings


def allowed_origins() -> list[str]:
    return [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",") if o.strip()]


def setup_cors(app: FastAPI) -> None:
    """Register CORS middleware for the admin console and client app origins."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )
