"""
Operator authentication.

The dashboard has a single operator account. Credentials are checked by an
identity provider (Supabase auth in production, a configured password hash for
local development); the resulting session lives in the Flask session cookie and
is wrapped by AdminSession.
"""

import hashlib
import hmac
import logging
import uuid
from functools import wraps

import requests
from flask import session, redirect, url_for, request, jsonify
from itsdangerous import URLSafeTimedSerializer, BadSignature

from .config import get_config_value
from .store import StoreError

logger = logging.getLogger(__name__)

TOKEN_MAX_AGE = 60 * 60 * 12


class AuthError(Exception):
    """Sign-in was rejected."""


def hash_password(password):
    """Simple password hashing"""
    return hashlib.sha256(password.encode()).hexdigest()


def get_identity_provider():
    """Return the identity provider matching the configured store backend."""
    if get_config_value('STORE_TYPE', 'local') == 'remote':
        return SupabaseAuth(
            base_url=get_config_value('SUPABASE_URL'),
            api_key=get_config_value('SUPABASE_KEY'),
            timeout=float(get_config_value('STORE_TIMEOUT', 30)),
        )
    password_hash = get_config_value('ADMIN_PASSWORD_HASH')
    if not password_hash and get_config_value('ADMIN_PASSWORD'):
        password_hash = hash_password(get_config_value('ADMIN_PASSWORD'))
    return LocalAuth(
        email=get_config_value('ADMIN_EMAIL'),
        password_hash=password_hash,
        secret_key=get_config_value('SECRET_KEY'),
    )


class SupabaseAuth:
    """Supabase (GoTrue) password sign-in."""

    def __init__(self, base_url, api_key, timeout=30):
        self.base_url = (base_url or '').rstrip('/')
        self.api_key = api_key
        self.timeout = timeout

    def _headers(self, access_token=None):
        headers = {'apikey': self.api_key, 'Content-Type': 'application/json'}
        if access_token:
            headers['Authorization'] = f'Bearer {access_token}'
        return headers

    def sign_in(self, email, password):
        try:
            resp = requests.post(
                f'{self.base_url}/auth/v1/token',
                params={'grant_type': 'password'},
                json={'email': email, 'password': password},
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise AuthError(f'Sign-in request failed: {e}') from e

        if resp.status_code != 200:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            raise AuthError(body.get('error_description') or body.get('msg')
                            or body.get('error') or f'HTTP {resp.status_code}')

        data = resp.json()
        user = data.get('user') or {}
        return {
            'access_token': data['access_token'],
            'user_id': user.get('id'),
            'email': user.get('email', email),
        }

    def get_user(self, access_token):
        """Validate a session token. Returns the user dict or None."""
        try:
            resp = requests.get(
                f'{self.base_url}/auth/v1/user',
                headers=self._headers(access_token),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Session check failed: {e}")
            return None
        if resp.status_code != 200:
            return None
        data = resp.json()
        return {'user_id': data.get('id'), 'email': data.get('email')}

    def sign_out(self, access_token):
        try:
            resp = requests.post(
                f'{self.base_url}/auth/v1/logout',
                headers=self._headers(access_token),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StoreError(f'Sign-out failed: {e}') from e
        if resp.status_code >= 400:
            raise StoreError(f'Sign-out failed: HTTP {resp.status_code}', resp.status_code)


class LocalAuth:
    """Password-hash sign-in with signed, stateless session tokens."""

    def __init__(self, email, password_hash, secret_key):
        self.email = (email or '').strip().lower()
        self.password_hash = password_hash
        self._serializer = URLSafeTimedSerializer(secret_key, salt='folioadmin-session')

    def sign_in(self, email, password):
        if not self.password_hash:
            raise AuthError('No admin password configured')
        if (email or '').strip().lower() != self.email or not hmac.compare_digest(
                hash_password(password), self.password_hash):
            raise AuthError('Invalid login credentials')
        return {
            'access_token': self._serializer.dumps({'email': self.email}),
            'user_id': self.email,
            'email': self.email,
        }

    def get_user(self, access_token):
        try:
            data = self._serializer.loads(access_token, max_age=TOKEN_MAX_AGE)
        except BadSignature:
            return None
        if data.get('email') != self.email:
            return None
        return {'user_id': self.email, 'email': self.email}

    def sign_out(self, access_token):
        # Tokens are stateless; clearing the cookie is the sign-out
        pass


class AdminSession:
    """
    Session context for the operator.

    start() signs in and populates the Flask session, restore() re-validates a
    stored token on page load, end() signs out and clears everything.
    """

    KEYS = ('admin_id', 'admin_email', 'access_token', 'workspace_id')

    def __init__(self, provider, storage=None):
        self.provider = provider
        self.storage = session if storage is None else storage

    @property
    def is_authenticated(self):
        return 'admin_id' in self.storage and bool(self.storage.get('access_token'))

    @property
    def access_token(self):
        return self.storage.get('access_token')

    @property
    def email(self):
        return self.storage.get('admin_email')

    @property
    def workspace_id(self):
        return self.storage.get('workspace_id')

    def start(self, password):
        """Sign in with the configured operator identity and the supplied secret."""
        email = get_config_value('ADMIN_EMAIL')
        result = self.provider.sign_in(email, password)
        self.storage['admin_id'] = result['user_id'] or result['email']
        self.storage['admin_email'] = result['email']
        self.storage['access_token'] = result['access_token']
        self.storage['workspace_id'] = uuid.uuid4().hex
        return result

    def restore(self):
        """Check the stored session with the provider; clear it if no longer valid."""
        if not self.is_authenticated:
            return False
        user = self.provider.get_user(self.access_token)
        if not user:
            self.clear()
            return False
        if not self.storage.get('workspace_id'):
            self.storage['workspace_id'] = uuid.uuid4().hex
        return True

    def end(self):
        token = self.access_token
        if token:
            try:
                self.provider.sign_out(token)
            except StoreError as e:
                logger.warning(f"Remote sign-out failed: {e}")
        self.clear()

    def clear(self):
        for key in self.KEYS:
            self.storage.pop(key, None)


def admin_required(f):
    """Decorator to require admin login.

    Page views redirect to the login screen; API calls and uploads answer 401.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'admin_id' not in session:
            if request.method != 'GET' or '/api/' in request.path:
                return jsonify({'error': 'Authentication required'}), 401
            return redirect(url_for('admin.login', next=request.path))
        return f(*args, **kwargs)
    return decorated_function
