"""ASGI entrypoint for the AskMyFile gateway."""

from askmyfile.api.app import create_app
from askmyfile.containers import build_container

app = create_app(build_container())
