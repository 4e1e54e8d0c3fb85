"""Web report browser."""

from safehandle_analyzer.web.app import create_app

__all__ = ["create_app"]
