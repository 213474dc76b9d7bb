"""
Operator Workspace
==================

Server-side view state for the dashboard: the local list of projects, the
project form, the hero image preview and the busy flags guarding duplicate
submissions. One workspace exists per signed-in session.
"""

import threading
import uuid
from contextlib import contextmanager

from flask import current_app, session

from .config import get_config_value
from .images import normalize_image
from .store import get_store

TARGET_PROJECT = 'project'
TARGET_HERO = 'hero'


class ActionInProgress(Exception):
    """The same action is already running for this workspace."""


class Workspace:
    TARGETS = (TARGET_PROJECT, TARGET_HERO)

    def __init__(self, synchronizer, hero_key='hero_image', image_options=None):
        from ..modules.projects.form import ProjectForm

        self.synchronizer = synchronizer
        self.form = ProjectForm()
        self.hero_key = hero_key
        self.hero_preview = ''
        self.image_options = image_options or {}

        self._form_busy = threading.Lock()
        self._hero_busy = threading.Lock()
        self._ticket_lock = threading.Lock()
        self._normalize_locks = {t: threading.Lock() for t in self.TARGETS}
        self._latest_ticket = {t: 0 for t in self.TARGETS}

    @property
    def projects(self):
        return self.synchronizer.records

    @property
    def form_busy(self):
        return self._form_busy.locked()

    @property
    def hero_busy(self):
        return self._hero_busy.locked()

    @contextmanager
    def _busy(self, lock, action):
        if not lock.acquire(blocking=False):
            raise ActionInProgress(f'{action} already in progress')
        try:
            yield
        finally:
            lock.release()

    def load(self):
        """Fetch the project list and the stored hero image."""
        self.synchronizer.list_projects()
        hero = self.synchronizer.fetch_singleton(self.hero_key)
        if hero:
            self.hero_preview = hero
        return self

    # ===== Projects =====

    def submit_project(self, data):
        with self._busy(self._form_busy, 'Project save'):
            self.form.update_fields(data or {})
            return self.form.submit(self.synchronizer)

    def begin_edit(self, record_id):
        record = self.synchronizer.find(record_id)
        if record is None:
            return None
        self.form.begin_edit(record)
        return record

    def cancel_edit(self):
        self.form.cancel()

    def delete_project(self, record_id):
        if self.form.editing_id is not None and str(self.form.editing_id) == str(record_id):
            self.form.reset()
        return self.synchronizer.delete(record_id)

    # ===== Images =====

    def select_image(self, target, source):
        """
        Normalize an uploaded image for the project form or the hero preview.

        Selections for the same target run one at a time; if a newer selection
        was made meanwhile, this one is dropped. Returns True when the result
        was applied. Raises ImageNormalizationError with state left untouched.
        """
        if target not in self.TARGETS:
            raise ValueError(f'Unknown image target: {target}')

        with self._ticket_lock:
            self._latest_ticket[target] += 1
            ticket = self._latest_ticket[target]

        with self._normalize_locks[target]:
            if ticket != self._latest_ticket[target]:
                return False
            data_url = normalize_image(source, **self.image_options)
            if ticket != self._latest_ticket[target]:
                return False
            if target == TARGET_PROJECT:
                self.form.select_image(data_url)
            else:
                self.hero_preview = data_url
        return True

    # ===== Hero =====

    def save_hero(self):
        """Store the hero preview. StoreError propagates to the caller."""
        with self._busy(self._hero_busy, 'Hero image save'):
            if not self.hero_preview:
                raise ValueError('No hero image selected')
            return self.synchronizer.upsert_singleton(self.hero_key, self.hero_preview)

    def to_dict(self):
        return {
            'projects': self.projects,
            'form': self.form.to_dict(),
            'hero_image': self.hero_preview,
            'form_busy': self.form_busy,
            'hero_busy': self.hero_busy,
        }


class WorkspaceRegistry:
    """Workspaces keyed by the id stored in each operator's session."""

    def __init__(self):
        self._workspaces = {}
        self._lock = threading.Lock()

    def __contains__(self, workspace_id):
        return workspace_id in self._workspaces

    def __len__(self):
        return len(self._workspaces)

    def get(self, workspace_id):
        return self._workspaces.get(workspace_id)

    def open(self, workspace_id, factory):
        """Return (workspace, created)."""
        with self._lock:
            workspace = self._workspaces.get(workspace_id)
            if workspace is not None:
                return workspace, False
            workspace = factory()
            self._workspaces[workspace_id] = workspace
            return workspace, True

    def close(self, workspace_id):
        with self._lock:
            self._workspaces.pop(workspace_id, None)


def build_workspace(access_token=None):
    from ..modules.projects.synchronizer import RecordSynchronizer

    synchronizer = RecordSynchronizer(
        get_store(access_token),
        projects_table=get_config_value('PROJECTS_TABLE', 'portfolio_projects'),
        config_table=get_config_value('SITE_CONFIG_TABLE', 'site_config'),
    )
    upscale = get_config_value('IMAGE_UPSCALE_SMALL', True)
    if isinstance(upscale, str):
        upscale = upscale.strip().lower() in ('1', 'true', 'yes', 'on')
    return Workspace(
        synchronizer,
        hero_key=get_config_value('HERO_IMAGE_KEY', 'hero_image'),
        image_options={
            'max_width': int(get_config_value('IMAGE_MAX_WIDTH', 800)),
            'quality': float(get_config_value('IMAGE_QUALITY', 0.7)),
            'upscale': bool(upscale),
        },
    )


def current_workspace(refresh=False):
    """Workspace for the signed-in operator, created and loaded on first use.

    refresh reloads the list and stored hero image for an existing workspace.
    """
    registry = current_app.extensions['folioadmin'].workspaces
    workspace_id = session.get('workspace_id')
    if not workspace_id:
        workspace_id = session['workspace_id'] = uuid.uuid4().hex
    workspace, created = registry.open(
        workspace_id, lambda: build_workspace(session.get('access_token')))
    if created or refresh:
        workspace.load()
    return workspace
