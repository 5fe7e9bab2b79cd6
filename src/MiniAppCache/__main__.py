"""Allow ``python -m MiniAppCache``."""

from .cli import app

app(prog_name="miniappcache")
