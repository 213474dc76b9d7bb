"""
Projects Admin Routes
=====================

JSON API behind the project editor. All state lives in the operator's
workspace; each response carries the current list and form so the page can
re-render from it.
"""

import logging

from flask import request, jsonify

from . import projects_bp
from .form import FormValidationError
from ...core.auth import admin_required
from ...core.images import ImageNormalizationError
from ...core.workspace import current_workspace, ActionInProgress, TARGET_PROJECT

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp', 'bmp', 'tif', 'tiff'}


def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def _state(workspace, **extra):
    payload = {
        'projects': workspace.projects,
        'form': workspace.form.to_dict(),
    }
    payload.update(extra)
    return payload


@projects_bp.route('/api/projects', methods=['GET'])
@admin_required
def get_projects():
    """Reload the project list from the store"""
    workspace = current_workspace()
    workspace.synchronizer.list_projects()
    return jsonify(_state(workspace))


@projects_bp.route('/api/projects', methods=['POST'])
@admin_required
def submit_project():
    """Create a project, or update the one being edited"""
    workspace = current_workspace()
    data = request.get_json(silent=True) or request.form.to_dict()
    editing = workspace.form.editing_id

    try:
        record = workspace.submit_project(data)
    except FormValidationError as e:
        return jsonify(_state(workspace, success=False, error=str(e), missing=e.missing)), 400
    except ImageNormalizationError as e:
        return jsonify(_state(workspace, success=False, error=str(e))), 422
    except ActionInProgress as e:
        return jsonify({'success': False, 'error': str(e)}), 409

    if record is None:
        # Already logged by the synchronizer; the form keeps what was typed
        return jsonify(_state(workspace, success=False)), 502

    return jsonify(_state(workspace, success=True, record=record,
                          action='updated' if editing is not None else 'created'))


@projects_bp.route('/api/projects/<record_id>/edit', methods=['POST'])
@admin_required
def edit_project(record_id):
    """Load a project into the form"""
    workspace = current_workspace()
    record = workspace.begin_edit(record_id)
    if record is None:
        return jsonify({'error': 'Project not found'}), 404
    return jsonify(_state(workspace, success=True))


@projects_bp.route('/api/form/cancel', methods=['POST'])
@admin_required
def cancel_edit():
    """Discard unsaved edits and return to a new entry"""
    workspace = current_workspace()
    workspace.cancel_edit()
    return jsonify(_state(workspace, success=True))


@projects_bp.route('/api/projects/<record_id>', methods=['DELETE'])
@admin_required
def delete_project(record_id):
    """Remove a project from the list and delete it from the store"""
    workspace = current_workspace()
    remote_ok = workspace.delete_project(record_id)
    return jsonify(_state(workspace, success=True, remote_deleted=remote_ok))


@projects_bp.route('/upload-image', methods=['POST'])
@admin_required
def upload_image():
    """Normalize an image for the project form"""
    if 'image' not in request.files:
        return jsonify({'error': 'No image file provided'}), 400

    file = request.files['image']
    if file.filename == '':
        return jsonify({'error': 'No file selected'}), 400

    if not allowed_file(file.filename):
        return jsonify({'error': 'Invalid file type'}), 400

    workspace = current_workspace()
    # Fields typed since the last submit travel with the upload
    workspace.form.update_fields(request.form.to_dict())
    try:
        applied = workspace.select_image(TARGET_PROJECT, file.stream)
    except ImageNormalizationError as e:
        logger.error(f"Error processing project image: {e}")
        return jsonify({'error': str(e)}), 422

    return jsonify(_state(workspace, success=True, applied=applied))
