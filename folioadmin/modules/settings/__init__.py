"""
Settings Module
===============

Site configuration values stored in the key/value table.
Currently manages the hero image shown on the portfolio landing page.
"""

from flask import Blueprint

settings_bp = Blueprint('settings', __name__,
                        url_prefix='/admin/settings')

from . import routes
