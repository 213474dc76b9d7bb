"""
Table Store
===========

Row-level access to the two collections the dashboard manages, with
remote (Supabase PostgREST) / local (SQLite) branching.

Both backends expose the same calls and raise StoreError for any failure
talking to the underlying store.
"""

import json
import uuid
from datetime import datetime, timezone

import requests

from .config import get_config_value
from .database import Database


class StoreError(Exception):
    """A call to the table store failed."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


def get_store(access_token=None):
    """Return the configured table store.

    Args:
        access_token: Operator session token; the anon key is used when omitted.
    """
    if get_config_value('STORE_TYPE', 'local') == 'remote':
        return RestTableStore(
            base_url=get_config_value('SUPABASE_URL'),
            api_key=get_config_value('SUPABASE_KEY'),
            access_token=access_token,
            timeout=float(get_config_value('STORE_TIMEOUT', 30)),
        )
    return SqliteTableStore(
        get_config_value('STORE_DB'),
        projects_table=get_config_value('PROJECTS_TABLE', 'portfolio_projects'),
        config_table=get_config_value('SITE_CONFIG_TABLE', 'site_config'),
    )


# ===== Remote (PostgREST) =====

class RestTableStore:
    """Supabase table access over the PostgREST HTTP API."""

    def __init__(self, base_url, api_key, access_token=None, timeout=30):
        if not base_url or not api_key:
            raise StoreError('SUPABASE_URL and SUPABASE_KEY must be configured')
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.access_token = access_token
        self.timeout = timeout

    def _headers(self, prefer=None):
        headers = {
            'apikey': self.api_key,
            'Authorization': f'Bearer {self.access_token or self.api_key}',
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }
        if prefer:
            headers['Prefer'] = prefer
        return headers

    def _request(self, method, table, params=None, payload=None, prefer=None):
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            resp = requests.request(
                method, url,
                params=params,
                json=payload,
                headers=self._headers(prefer),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StoreError(f'{method} {table} failed: {e}') from e

        if resp.status_code >= 400:
            raise StoreError(_error_message(resp), status_code=resp.status_code)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise StoreError(f'{method} {table} returned invalid JSON') from e

    def select_all(self, table, order_by='created_at', descending=True):
        direction = 'desc' if descending else 'asc'
        rows = self._request('GET', table, params={
            'select': '*',
            'order': f'{order_by}.{direction}',
        })
        return rows or []

    def insert(self, table, row):
        rows = self._request('POST', table, payload=[row], prefer='return=representation')
        if not rows:
            raise StoreError(f'Insert into {table} returned no rows')
        return rows[0]

    def update(self, table, row_id, fields):
        rows = self._request(
            'PATCH', table,
            params={'id': f'eq.{row_id}'},
            payload=fields,
            prefer='return=representation',
        )
        return rows[0] if rows else None

    def delete(self, table, row_id):
        self._request('DELETE', table, params={'id': f'eq.{row_id}'})

    def select_by_key(self, table, key):
        rows = self._request('GET', table, params={'select': '*', 'key': f'eq.{key}'})
        return rows[0] if rows else None

    def upsert(self, table, row, on_conflict='key'):
        rows = self._request(
            'POST', table,
            params={'on_conflict': on_conflict},
            payload=[row],
            prefer='resolution=merge-duplicates,return=representation',
        )
        return rows[0] if rows else row


def _error_message(resp):
    """Pull the most descriptive message out of a Supabase error response."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f'HTTP {resp.status_code}'
    if isinstance(body, dict):
        return (body.get('message') or body.get('msg') or body.get('error_description')
                or body.get('error') or f'HTTP {resp.status_code}')
    return str(body)


# ===== Local (SQLite) =====

class SqliteTableStore:
    """SQLite stand-in for the hosted tables, used for local development and tests."""

    # Columns holding lists are stored as JSON text
    _JSON_COLUMNS = {'tags'}

    def __init__(self, db_path, projects_table='portfolio_projects', config_table='site_config'):
        self.db_path = db_path
        self.projects_table = projects_table
        self.config_table = config_table
        self._columns = {
            projects_table: ('id', 'title', 'brand', 'description', 'tags',
                             'link', 'image_url', 'created_at'),
            config_table: ('key', 'value', 'updated_at'),
        }
        try:
            Database.ensure_schema(db_path, (
                f'''
                CREATE TABLE IF NOT EXISTS {projects_table} (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    brand TEXT NOT NULL,
                    description TEXT,
                    tags TEXT,
                    link TEXT DEFAULT '#',
                    image_url TEXT DEFAULT '',
                    created_at TEXT NOT NULL
                )
                ''',
                f'CREATE INDEX IF NOT EXISTS idx_{projects_table}_created '
                f'ON {projects_table}(created_at)',
                f'''
                CREATE TABLE IF NOT EXISTS {config_table} (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                ''',
            ))
        except Exception as e:
            raise StoreError(f'Could not open local store {db_path}: {e}') from e

    def _known_columns(self, table):
        if table not in self._columns:
            raise StoreError(f'Unknown table: {table}')
        return self._columns[table]

    def _encode(self, row):
        return {k: json.dumps(v) if k in self._JSON_COLUMNS else v for k, v in row.items()}

    def _decode(self, row):
        d = dict(row)
        for col in self._JSON_COLUMNS:
            if col in d:
                d[col] = json.loads(d[col]) if d[col] else []
        return d

    def _execute(self, sql, params=()):
        try:
            with Database.connect(self.db_path) as conn:
                cursor = conn.execute(sql, params)
                rows = cursor.fetchall()
                conn.commit()
                return rows, cursor.rowcount
        except Exception as e:
            raise StoreError(str(e)) from e

    def _filtered(self, table, row):
        columns = self._known_columns(table)
        return {k: v for k, v in row.items() if k in columns}

    def select_all(self, table, order_by='created_at', descending=True):
        if order_by not in self._known_columns(table):
            raise StoreError(f'Unknown column: {order_by}')
        direction = 'DESC' if descending else 'ASC'
        rows, _ = self._execute(f'SELECT * FROM {table} ORDER BY {order_by} {direction}')
        return [self._decode(r) for r in rows]

    def _get(self, table, column, value):
        rows, _ = self._execute(f'SELECT * FROM {table} WHERE {column} = ?', (value,))
        return self._decode(rows[0]) if rows else None

    def insert(self, table, row):
        data = self._filtered(table, row)
        if table == self.projects_table:
            data.setdefault('id', uuid.uuid4().hex)
        data = self._encode(data)
        cols = ', '.join(data)
        marks = ', '.join('?' for _ in data)
        self._execute(f'INSERT INTO {table} ({cols}) VALUES ({marks})', tuple(data.values()))
        key_col = 'id' if table == self.projects_table else 'key'
        return self._get(table, key_col, data[key_col])

    def update(self, table, row_id, fields):
        data = self._encode(self._filtered(table, fields))
        data.pop('id', None)
        if not data:
            return self._get(table, 'id', str(row_id))
        assignments = ', '.join(f'{col} = ?' for col in data)
        _, count = self._execute(
            f'UPDATE {table} SET {assignments} WHERE id = ?',
            tuple(data.values()) + (str(row_id),),
        )
        if count == 0:
            return None
        return self._get(table, 'id', str(row_id))

    def delete(self, table, row_id):
        self._known_columns(table)
        self._execute(f'DELETE FROM {table} WHERE id = ?', (str(row_id),))

    def select_by_key(self, table, key):
        self._known_columns(table)
        return self._get(table, 'key', key)

    def upsert(self, table, row, on_conflict='key'):
        row = dict(row)
        if table == self.config_table:
            row.setdefault('updated_at', datetime.now(timezone.utc).isoformat())
        data = self._encode(self._filtered(table, row))
        cols = ', '.join(data)
        marks = ', '.join('?' for _ in data)
        updates = ', '.join(f'{c} = excluded.{c}' for c in data if c != on_conflict)
        self._execute(f'''
            INSERT INTO {table} ({cols}) VALUES ({marks})
            ON CONFLICT({on_conflict}) DO UPDATE SET {updates}
        ''', tuple(data.values()))
        return self._get(table, on_conflict, data[on_conflict])
