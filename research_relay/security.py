from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from research_relay.config import Settings


def setup_cors(app: FastAPI, settings: Settings) -> None:
    origins = list(settings.cors_allow_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
