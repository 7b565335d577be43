"""ASGI entrypoint for the man-hour tracker API."""

from manhour_tracker.api.app import create_app
from manhour_tracker.containers import build_container

app = create_app(build_container())
