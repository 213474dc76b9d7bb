"""
Admin Dashboard Routes
======================

Sign-in gate and the dashboard page.
"""

from flask import render_template, request, redirect, url_for, session, jsonify, current_app

from . import dashboard_bp
from ...core.auth import AdminSession, AuthError, admin_required, get_identity_provider
from ...core.config import get_config_value
from ...core.logging_service import LoggingService
from ...core.workspace import current_workspace


def _safe_next(target):
    # Only allow local redirects after login
    if target and target.startswith('/') and not target.startswith('//'):
        return target
    return None


def _close_workspace(workspace_id):
    if workspace_id:
        current_app.extensions['folioadmin'].workspaces.close(workspace_id)


@dashboard_bp.route('/login', methods=['GET', 'POST'])
def login():
    """Admin login route"""
    if request.method == 'POST':
        password = request.form.get('password', '')
        admin_session = AdminSession(get_identity_provider())

        if not password:
            return render_template('dashboard/login.html', auth_error=True), 401

        previous_workspace = admin_session.workspace_id
        try:
            admin_session.start(password)
        except AuthError as e:
            LoggingService.log_security_event('Admin login failed', {'reason': str(e)})
            return render_template('dashboard/login.html', auth_error=True), 401

        # A fresh sign-in replaces the workspace of any earlier session on this browser
        _close_workspace(previous_workspace)
        LoggingService.log_user_action('auth', 'login')
        next_page = _safe_next(request.args.get('next'))
        return redirect(next_page or url_for('admin.dashboard'))

    if 'admin_id' in session:
        return redirect(url_for('admin.dashboard'))
    return render_template('dashboard/login.html', auth_error=False)


@dashboard_bp.route('/logout')
def logout():
    """Admin logout route"""
    admin_session = AdminSession(get_identity_provider())
    workspace_id = admin_session.workspace_id
    admin_session.end()
    _close_workspace(workspace_id)
    LoggingService.log_user_action('auth', 'logout')
    return redirect(url_for('admin.login'))


@dashboard_bp.route('/')
@dashboard_bp.route('/dashboard')
def dashboard():
    """The dashboard page; re-validates the stored session first"""
    admin_session = AdminSession(get_identity_provider())
    workspace_id = admin_session.workspace_id
    if not admin_session.restore():
        _close_workspace(workspace_id)
        return redirect(url_for('admin.login', next=request.path))

    workspace = current_workspace(refresh=True)
    return render_template(
        'dashboard/dashboard.html',
        state=workspace.to_dict(),
        admin_email=admin_session.email,
        max_width=get_config_value('IMAGE_MAX_WIDTH', 800),
    )


@dashboard_bp.route('/api/activity')
@admin_required
def activity():
    """Recent admin activity, newest first"""
    try:
        limit = min(int(request.args.get('limit', 50)), 500)
    except ValueError:
        return jsonify({'error': 'limit must be a number'}), 400
    return jsonify({'success': True,
                    'entries': LoggingService.recent(limit, level=request.args.get('level'))})
