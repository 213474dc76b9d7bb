import os
from dotenv import load_dotenv

load_dotenv(override=True)


def _as_bool(value, default=False):
    if value is None:
        return default
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """
    Base configuration for the folioadmin dashboard.
    Deployments provide the Supabase project and operator identity via environment variables.
    """
    # Flask settings
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production')
    BRAND_NAME = os.getenv('BRAND_NAME', 'Portfolio Manager')

    # Hosted backend (Supabase)
    SUPABASE_URL = os.getenv('SUPABASE_URL', '')
    SUPABASE_KEY = os.getenv('SUPABASE_KEY', '')

    # 'remote' talks to Supabase, 'local' keeps everything in a SQLite file
    STORE_TYPE = os.getenv('STORE_TYPE', 'remote' if SUPABASE_URL else 'local')
    STORE_TIMEOUT = float(os.getenv('STORE_TIMEOUT', '30'))

    # Operator identity - the dashboard has exactly one admin account
    ADMIN_EMAIL = os.getenv('ADMIN_EMAIL', 'admin@example.com')
    ADMIN_PASSWORD_HASH = os.getenv('ADMIN_PASSWORD_HASH')
    ADMIN_PASSWORD = os.getenv('ADMIN_PASSWORD')

    # Local paths
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))
    STORE_DB = os.getenv('STORE_DB', os.path.join(DB_DIR, 'portfolio.db'))
    ACTIVITY_DB = os.getenv('ACTIVITY_DB', os.path.join(DB_DIR, 'activity_log.db'))

    # Table names
    PROJECTS_TABLE = os.getenv('PROJECTS_TABLE', 'portfolio_projects')
    SITE_CONFIG_TABLE = os.getenv('SITE_CONFIG_TABLE', 'site_config')
    HERO_IMAGE_KEY = 'hero_image'

    # Image normalization
    IMAGE_MAX_WIDTH = int(os.getenv('IMAGE_MAX_WIDTH', '800'))
    IMAGE_QUALITY = float(os.getenv('IMAGE_QUALITY', '0.7'))
    IMAGE_UPSCALE_SMALL = _as_bool(os.getenv('IMAGE_UPSCALE_SMALL'), default=True)

    # Origins allowed to read the public portfolio feed
    PUBLIC_ORIGINS = [o.strip() for o in os.getenv('PUBLIC_ORIGINS', '*').split(',') if o.strip()]

    port = int(os.getenv('PORT', '5000'))


def get_config_value(key, default=None):
    """Get configuration value: Flask app config first, then Config, then env var"""
    try:
        from flask import current_app
        val = current_app.config.get(key)
        if val is not None and val != '':
            return val
    except RuntimeError:
        pass
    val = getattr(Config, key, None)
    if val is not None and val != '':
        return val
    return os.getenv(key, default)
