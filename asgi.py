"""
asgi.py -- Application assembly for PlanIt.

This is the ONLY file that joins the JSON API with the browser client. When
CLIENT_DIR points at the client folder (index.html, app.js, styles), it is
served at "/"; otherwise the process is API-only. api/main.py knows nothing
about static files.

Run with:  uvicorn asgi:app --reload
           python main.py
"""

from pathlib import Path

from fastapi.staticfiles import StaticFiles

from api.main import app, logger
from core.config import get_settings

_client_dir = get_settings().client_dir

# Mounted last so every /api route matches first.
if _client_dir:
    if Path(_client_dir).is_dir():
        app.mount("/", StaticFiles(directory=_client_dir, html=True), name="client")
    else:
        logger.warning("CLIENT_DIR %s is not a directory -- serving the API only", _client_dir)
