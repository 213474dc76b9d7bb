"""
Dashboard Module
================

Admin dashboard interface.

Provides:
- Operator sign-in / sign-out against the identity provider
- Session restore on page load
- The single-page dashboard (projects and hero image tabs)
- Recent activity feed

This is the foundation module that the projects and settings APIs plug into.
"""

from flask import Blueprint

# Blueprint name is 'admin' so other modules can redirect to admin.login
dashboard_bp = Blueprint(
    'admin',
    __name__,
    url_prefix='/admin',
    template_folder='templates',
)

from . import routes

__all__ = ['dashboard_bp']
