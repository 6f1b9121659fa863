"""
Minimal Django configuration for catalog introspection.

schema_loader talks to databases through Django's connection layer, which
needs configured settings. ``setup_django`` provides just enough of them.
"""

import logging
import os
from typing import Any, Dict, Optional

import django
from django.conf import settings
from django.db import connections

from .exceptions import DatabaseConnectionError


logger = logging.getLogger(__name__)


def _plain_settings(db_settings: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Convert pydantic database settings to the plain dicts Django expects."""
    plain_db_settings: Dict[str, Dict[str, Any]] = {}
    for alias, db_model in db_settings.items():
        if hasattr(db_model, 'model_dump') and callable(db_model.model_dump):
            plain_db_settings[alias] = db_model.model_dump(exclude_none=True)
        elif isinstance(db_model, dict):
            plain_db_settings[alias] = dict(db_model)
        else:
            logger.error(f"Unexpected type for database settings '{alias}': {type(db_model)}. Expected Pydantic model or dict.")
            raise TypeError(f"Invalid database settings type for alias '{alias}'.")
    return plain_db_settings


def setup_django(db_settings: Dict[str, Any], secret_key: Optional[str] = None) -> None:
    """Configures minimal Django settings and runs django.setup()."""
    if settings.configured:
        logger.debug("Django settings already configured.")
        return

    logger.info("Configuring Django settings for introspection...")
    plain_db_settings = _plain_settings(db_settings)
    logger.debug(f"Using database aliases for Django: {sorted(plain_db_settings)}")

    settings.configure(
        SECRET_KEY=secret_key or os.urandom(50).hex(),
        DATABASES=plain_db_settings,
        TIME_ZONE='UTC',
        USE_TZ=True,
        DEFAULT_AUTO_FIELD='django.db.models.BigAutoField',
    )
    django.setup()
    logger.info("Django setup complete.")


def database_url(db_settings: Dict[str, Any]) -> str:
    """
    Render Django database settings as a URL for error reports.

    Example:
        >>> database_url({"ENGINE": "django.db.backends.postgresql", "NAME": "music",
        ...               "USER": "loader", "PASSWORD": "secret", "HOST": "db", "PORT": 5432})
        'postgresql://loader:secret@db:5432/music'
    """
    vendor = (db_settings.get('ENGINE') or '').rsplit('.', 1)[-1]
    user = db_settings.get('USER') or ''
    password = db_settings.get('PASSWORD') or ''
    credentials = f"{user}:{password}@" if password else (f"{user}@" if user else '')
    host = db_settings.get('HOST') or ''
    port = db_settings.get('PORT')
    location = f"{host}:{port}" if port else host
    return f"{vendor}://{credentials}{location}/{db_settings.get('NAME') or ''}"


def get_connection(db_alias: str):
    """Return the Django connection for ``db_alias``, making sure it can connect."""
    try:
        conn = connections[db_alias]
        conn.ensure_connection()
    except Exception as e:
        engine = url = None
        try:
            db_settings = connections.settings[db_alias]
            engine = db_settings.get('ENGINE')
            url = database_url(db_settings)
        except Exception:
            logger.debug(f"No settings available for alias '{db_alias}'")
        raise DatabaseConnectionError(
            f"Could not connect to database alias '{db_alias}': {e}",
            database_url=url,
            engine=engine,
        ) from e
    return conn
