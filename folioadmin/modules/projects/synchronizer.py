"""
Record Synchronizer
===================

Maps form input onto create/update/delete calls against the project table and
keys in the site configuration table, and keeps the local list of records in
step with what the store returned.
"""

import logging
from datetime import datetime, timezone

from ...core.images import ImageNormalizationError, is_inline_image
from ...core.logging_service import LoggingService
from ...core.store import StoreError

logger = logging.getLogger(__name__)

DEFAULT_LINK = '#'
PROJECT_FIELDS = ('title', 'brand', 'description', 'tags', 'link')


def _utc_now():
    return datetime.now(timezone.utc)


def parse_tags(raw):
    """Split comma-separated tag input into trimmed, non-empty tokens."""
    if raw is None:
        return []
    parts = raw.split(',') if isinstance(raw, str) else raw
    return [str(t).strip() for t in parts if t is not None and str(t).strip()]


def project_payload(fields):
    """Normalise submitted form fields into a project row (without image or timestamp)."""
    return {
        'title': (fields.get('title') or '').strip(),
        'brand': (fields.get('brand') or '').strip(),
        'description': fields.get('description') or '',
        'tags': parse_tags(fields.get('tags')),
        'link': (fields.get('link') or '').strip() or DEFAULT_LINK,
    }


def _check_image(image):
    if image and not is_inline_image(image):
        raise ImageNormalizationError('Project image must be an inline data:image URL')


def _same_id(a, b):
    return str(a) == str(b)


class RecordSynchronizer:
    """CRUD facade over the project and site configuration tables."""

    def __init__(self, store, projects_table='portfolio_projects',
                 config_table='site_config', clock=None):
        self.store = store
        self.projects_table = projects_table
        self.config_table = config_table
        self.records = []
        self._clock = clock or _utc_now

    def find(self, record_id):
        return next((r for r in self.records if _same_id(r.get('id'), record_id)), None)

    def list_projects(self):
        """Reload all projects, newest first. Read failures leave the local list as it was."""
        try:
            rows = self.store.select_all(self.projects_table, order_by='created_at', descending=True)
        except StoreError as e:
            logger.error(f"Error listing projects: {e}")
            return self.records
        self.records = list(rows or [])
        return self.records

    def create(self, fields, image=None):
        """Insert a new project and prepend it to the local list.

        Returns the stored row, or None when the insert failed.
        Raises ImageNormalizationError for an image that is not an inline data URL.
        """
        _check_image(image)
        payload = project_payload(fields)
        payload['image_url'] = image or ''
        payload['created_at'] = self._clock().isoformat()

        try:
            row = self.store.insert(self.projects_table, payload)
        except StoreError as e:
            LoggingService.error('projects', f"Error creating project: {e}",
                                 {'title': payload['title']})
            return None

        self.records.insert(0, row)
        LoggingService.log_user_action('projects', f"created project {row.get('id')}",
                                       {'title': row.get('title')})
        return row

    def update(self, record_id, fields, image=None):
        """Replace a project's fields; the stored image is only replaced when a new one is given.

        Returns the stored row, or None when the update failed or matched nothing.
        Raises ImageNormalizationError for an image that is not an inline data URL.
        """
        _check_image(image)
        payload = project_payload(fields)
        if image:
            payload['image_url'] = image

        try:
            row = self.store.update(self.projects_table, record_id, payload)
        except StoreError as e:
            LoggingService.error('projects', f"Error updating project {record_id}: {e}")
            return None

        if row is None:
            LoggingService.warning('projects', f"Project {record_id} not found for update")
            return None

        self.records = [row if _same_id(r.get('id'), record_id) else r for r in self.records]
        LoggingService.log_user_action('projects', f"updated project {record_id}",
                                       {'image_replaced': bool(image)})
        return row

    def delete(self, record_id):
        """Drop the project from the local list, then delete it remotely.

        A failed remote delete is only logged; the record stays out of the local
        list until the next list_projects().
        Returns True when the remote delete succeeded.
        """
        self.records = [r for r in self.records if not _same_id(r.get('id'), record_id)]
        try:
            self.store.delete(self.projects_table, record_id)
        except StoreError as e:
            LoggingService.error('projects', f"Error deleting project {record_id}: {e}")
            return False
        LoggingService.log_user_action('projects', f"deleted project {record_id}")
        return True

    def upsert_singleton(self, key, value):
        """Overwrite or insert a site configuration value. Errors propagate to the caller."""
        row = self.store.upsert(self.config_table, {'key': key, 'value': value}, on_conflict='key')
        LoggingService.log_user_action('site_config', f"updated {key}")
        return row

    def fetch_singleton(self, key):
        """Value stored under key, or None when absent or unreadable."""
        try:
            row = self.store.select_by_key(self.config_table, key)
        except StoreError as e:
            logger.error(f"Error fetching {key}: {e}")
            return None
        return row.get('value') if row else None
