"""ASGI entrypoint: ``uvicorn food_ordering.asgi:app``."""

import os

import uvicorn

from .main import create_app

app = create_app()


def run():
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
