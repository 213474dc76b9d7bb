"""
folioadmin Core
===============

Shared configuration, storage, auth and image handling for the dashboard modules.
"""

from .config import Config, get_config_value
from .database import Database
from .logging_service import LoggingService
from .store import StoreError, get_store

__all__ = ['Config', 'get_config_value', 'Database', 'LoggingService', 'StoreError', 'get_store']
