"""
folioadmin - Portfolio Admin Dashboard
======================================

A Flask admin dashboard for a portfolio website, backed by a hosted
Supabase project:
- Project records (create, edit, delete, tags, inline images)
- Hero image for the landing page
- Single-operator sign-in
- Public read-only feed for the portfolio site

Usage:
    from flask import Flask
    from folioadmin import Folioadmin

    app = Flask(__name__)
    Folioadmin(app)
"""

import os

__version__ = '0.1.0'

from .core.config import Config
from .core.workspace import WorkspaceRegistry

# Keys copied from Config into app.config when the host app has not set them
_CONFIG_KEYS = (
    'SUPABASE_URL', 'SUPABASE_KEY', 'STORE_TYPE', 'STORE_TIMEOUT',
    'ADMIN_EMAIL', 'ADMIN_PASSWORD_HASH', 'ADMIN_PASSWORD',
    'DB_DIR', 'STORE_DB', 'ACTIVITY_DB',
    'PROJECTS_TABLE', 'SITE_CONFIG_TABLE', 'HERO_IMAGE_KEY',
    'IMAGE_MAX_WIDTH', 'IMAGE_QUALITY', 'IMAGE_UPSCALE_SMALL', 'BRAND_NAME',
)

DEFAULT_FEATURES = {
    'dashboard': True,
    'projects': True,
    'settings': True,
    'projects_public': True,
}


class Folioadmin:
    """Flask extension registering the dashboard modules on an app."""

    def __init__(self, app=None, config=None):
        self._config = dict(config or {})
        self._registered = []
        self.workspaces = WorkspaceRegistry()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self._apply_defaults(app)
        self._setup_database_dir(app)
        self._register_modules(app)

        @app.context_processor
        def inject_folioadmin():
            return {
                'folioadmin_config': dict(self._config),
                'brand_name': app.config.get('BRAND_NAME') or Config.BRAND_NAME,
            }

        app.extensions['folioadmin'] = self

    def _apply_defaults(self, app):
        if not app.config.get('SECRET_KEY'):
            app.config['SECRET_KEY'] = Config.SECRET_KEY
        for key in _CONFIG_KEYS:
            if app.config.get(key) in (None, ''):
                app.config[key] = getattr(Config, key)
        # Local files follow DB_DIR when only the directory was overridden
        db_dir = app.config['DB_DIR']
        if app.config['STORE_DB'] == Config.STORE_DB and db_dir != Config.DB_DIR:
            app.config['STORE_DB'] = os.path.join(db_dir, 'portfolio.db')
        if app.config['ACTIVITY_DB'] == Config.ACTIVITY_DB and db_dir != Config.DB_DIR:
            app.config['ACTIVITY_DB'] = os.path.join(db_dir, 'activity_log.db')

    def _setup_database_dir(self, app):
        os.makedirs(app.config['DB_DIR'], exist_ok=True)

    def _features(self):
        features = dict(DEFAULT_FEATURES)
        features.update(self._config.get('features', {}))
        return features

    def _register_modules(self, app):
        from .modules.dashboard import dashboard_bp
        from .modules.projects import projects_bp
        from .modules.settings import settings_bp
        from .modules.projects_public import projects_public_bp

        blueprints = {
            'dashboard': dashboard_bp,
            'projects': projects_bp,
            'settings': settings_bp,
            'projects_public': projects_public_bp,
        }
        features = self._features()
        for name, blueprint in blueprints.items():
            # The dashboard provides the login gate every other admin module redirects to
            if name != 'dashboard' and not features.get(name, False):
                continue
            app.register_blueprint(blueprint)
            self._registered.append(name)

    def get_registered_modules(self):
        return list(self._registered)


__all__ = ['Folioadmin', 'Config', '__version__']
