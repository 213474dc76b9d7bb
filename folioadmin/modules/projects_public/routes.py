"""
Public portfolio feed for cross-site embedding.

GET /api/portfolio/projects?limit=6&brand=Hardware

Reads with the anon key, so only rows the store exposes publicly are returned.
"""

import logging

from flask import jsonify, request
from flask_cors import cross_origin

from . import projects_public_bp
from ..projects.synchronizer import RecordSynchronizer
from ...core.config import Config, get_config_value
from ...core.store import get_store, StoreError

logger = logging.getLogger(__name__)


def _public_synchronizer():
    return RecordSynchronizer(
        get_store(),
        projects_table=get_config_value('PROJECTS_TABLE', 'portfolio_projects'),
        config_table=get_config_value('SITE_CONFIG_TABLE', 'site_config'),
    )


@projects_public_bp.route('/projects', methods=['GET', 'OPTIONS'])
@cross_origin(origins=Config.PUBLIC_ORIGINS, supports_credentials=False)
def public_projects():
    """
    Public projects endpoint.

    Query params:
        limit: Max projects to return (default all, max 100)
        brand: Only projects with this brand/category (case-insensitive)
    """
    try:
        projects = _public_synchronizer().list_projects()
    except StoreError as e:
        logger.error(f"Public projects unavailable: {e}")
        projects = []

    brand = request.args.get('brand', '').strip().lower()
    if brand:
        projects = [p for p in projects if (p.get('brand') or '').lower() == brand]

    limit = request.args.get('limit', type=int)
    if limit is not None:
        projects = projects[:max(0, min(limit, 100))]

    return jsonify(projects)


@projects_public_bp.route('/hero', methods=['GET', 'OPTIONS'])
@cross_origin(origins=Config.PUBLIC_ORIGINS, supports_credentials=False)
def public_hero():
    """Public hero image endpoint"""
    try:
        value = _public_synchronizer().fetch_singleton(
            get_config_value('HERO_IMAGE_KEY', 'hero_image'))
    except StoreError as e:
        logger.error(f"Public hero unavailable: {e}")
        value = None
    return jsonify({'hero_image': value or ''})
