"""ASGI entrypoint for the vision mint API."""

from vision_mint.api.app import create_app
from vision_mint.containers import build_container

app = create_app(build_container())
