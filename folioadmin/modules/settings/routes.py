"""
Settings Admin Routes
=====================

Hero image preview and save.
"""

import logging

from flask import request, jsonify

from . import settings_bp
from ..projects.routes import allowed_file
from ...core.auth import admin_required
from ...core.images import ImageNormalizationError
from ...core.logging_service import LoggingService
from ...core.store import StoreError
from ...core.workspace import current_workspace, ActionInProgress, TARGET_HERO

logger = logging.getLogger(__name__)


@settings_bp.route('/api/hero', methods=['GET'])
@admin_required
def get_hero():
    """Current hero preview (stored value unless a new one was selected)"""
    workspace = current_workspace()
    return jsonify({'success': True, 'hero_image': workspace.hero_preview,
                    'busy': workspace.hero_busy})


@settings_bp.route('/upload-image', methods=['POST'])
@admin_required
def upload_hero_image():
    """Normalize a new hero image into the preview"""
    if 'image' not in request.files:
        return jsonify({'error': 'No image file provided'}), 400

    file = request.files['image']
    if file.filename == '' or not allowed_file(file.filename):
        return jsonify({'error': 'Invalid file type'}), 400

    workspace = current_workspace()
    try:
        applied = workspace.select_image(TARGET_HERO, file.stream)
    except ImageNormalizationError as e:
        logger.error(f"Error processing hero image: {e}")
        return jsonify({'error': str(e)}), 422

    return jsonify({'success': True, 'applied': applied, 'hero_image': workspace.hero_preview})


@settings_bp.route('/api/hero', methods=['POST'])
@admin_required
def save_hero():
    """Write the hero preview to the site configuration table"""
    workspace = current_workspace()
    try:
        workspace.save_hero()
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except ActionInProgress as e:
        return jsonify({'success': False, 'error': str(e)}), 409
    except StoreError as e:
        LoggingService.log_error_with_traceback('site_config', e, {'key': workspace.hero_key})
        return jsonify({'success': False, 'error': f'Error: {e}'}), 502

    return jsonify({'success': True, 'message': 'Hero image updated'})
