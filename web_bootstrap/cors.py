"""
CORS policy for the web bootstrap service.

Allowed origins come from configuration; credentials, methods and request
headers are fixed.
"""

import logging
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .logging_config import get_logger, log_event

logger = get_logger(__name__)

CORS_ALLOW_CREDENTIALS = True
CORS_METHODS: List[str] = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
CORS_ALLOWED_HEADERS: List[str] = ["Content-Type", "Authorization"]


def configure_cors(app: FastAPI, allowed_origins: List[str]) -> None:
    """
    Install the CORS middleware.

    Requests from origins outside ``allowed_origins`` still get a response,
    just without the permissive ``Access-Control-Allow-*`` headers.

    Args:
        app: FastAPI application instance
        allowed_origins: Origins permitted to make cross-origin requests
    """
    log_event(
        logger,
        logging.INFO,
        "Configuring CORS",
        cors_origins=allowed_origins,
        cors_methods=CORS_METHODS,
        cors_allowed_headers=CORS_ALLOWED_HEADERS,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=CORS_ALLOW_CREDENTIALS,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_ALLOWED_HEADERS,
    )
