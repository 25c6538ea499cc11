"""ASGI entrypoint for the CloudMenu API."""

from cloudmenu.api.app import create_app
from cloudmenu.containers import build_container

app = create_app(build_container())
