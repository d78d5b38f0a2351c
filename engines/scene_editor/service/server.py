"""FastAPI application for the Scene Editor."""
from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from engines.scene_editor.editor.session import EditorSession
from engines.scene_editor.service.routes import router


def create_app(session: Optional[EditorSession] = None) -> FastAPI:
    app = FastAPI(title="Scene Editor", version="0.1.0")
    app.state.session = session or EditorSession()
    app.include_router(router)
    return app


app = create_app()
