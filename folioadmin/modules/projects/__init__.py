"""
Projects Admin Module
=====================

Admin API for the portfolio's project records.
Plugs into the admin dashboard module.

Provides:
- Project creation and editing (edit / cancel form states)
- Optimistic project deletion
- Image upload, normalized to an inline JPEG
- Comma-separated tags
"""

from flask import Blueprint

projects_bp = Blueprint(
    'projects_admin',
    __name__,
    url_prefix='/admin/projects',
)

from . import routes

__all__ = ['projects_bp']
