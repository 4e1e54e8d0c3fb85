"""FastAPI application factory."""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI

from safehandle_analyzer import __version__
from safehandle_analyzer.web.api import router
from safehandle_analyzer.web.state import ReportState


def create_app(
    cache_file: Path = Path("analysis_cache.json"),
    output_dir: Path = Path("."),
) -> FastAPI:
    app = FastAPI(title="safehandle-analyzer", version=__version__)
    app.state.reports = ReportState(cache_file, output_dir)
    app.include_router(router)
    return app
