"""
FastAPI Routes.

페이지 라우트 (HTML + HTMX) + API 라우트 (Relay JSON)
"""

from . import colorize, ui

__all__ = ["colorize", "ui"]
