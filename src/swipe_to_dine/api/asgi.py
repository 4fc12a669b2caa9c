"""ASGI entrypoint for the swipe-to-dine API."""

from swipe_to_dine.api.app import create_app
from swipe_to_dine.containers import build_container

app = create_app(build_container())
