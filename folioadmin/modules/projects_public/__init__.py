"""
Projects Public API Module
==========================

Public, read-only feed of the portfolio content for the public website.

Provides:
- /api/portfolio/projects - CORS-enabled JSON list of projects, newest first
- /api/portfolio/hero     - CORS-enabled JSON hero image
"""

from flask import Blueprint

projects_public_bp = Blueprint(
    'projects_public',
    __name__,
    url_prefix='/api/portfolio',
)

from . import routes

__all__ = ['projects_public_bp']
