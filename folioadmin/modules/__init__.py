"""
folioadmin Modules
==================

Flask blueprint modules making up the admin dashboard.
"""

__all__ = ['dashboard', 'projects', 'settings', 'projects_public']
