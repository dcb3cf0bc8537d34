"""Environment and ``.env`` configuration source for the Loghub handler.

Purpose
-------
Deployments usually configure log shipping through the environment. This
module maps ``LOGHUB_*`` variables onto the camelCase attribute surface
accepted by :func:`lib_log_loghub.domain.settings.build_settings` and
optionally seeds the environment from the nearest ``.env`` file.

Contents
--------
* :data:`DOTENV_ENV_VAR` / :data:`PRODUCER_FACTORY_ENV_VAR` - toggles.
* :func:`env_name` - attribute-to-variable naming rule.
* :func:`attributes_from_env` - collect attributes from a mapping.
* :func:`should_use_dotenv` / :func:`enable_dotenv` - ``.env`` loading.

System Role
-----------
Outer configuration layer used by :meth:`LoghubHandler.from_env` and the CLI.
Real environment variables always take precedence over ``.env`` entries.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from threading import RLock

from dotenv import find_dotenv, load_dotenv

from lib_log_loghub.domain.settings import ATTRIBUTE_NAMES

logger = logging.getLogger(__name__)

ENV_PREFIX = "LOGHUB_"
DOTENV_ENV_VAR = "LOGHUB_USE_DOTENV"
PRODUCER_FACTORY_ENV_VAR = "LOGHUB_PRODUCER_FACTORY"

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_TRUTHY = {"1", "true", "yes", "on"}

_DOTENV_LOCK = RLock()
_DOTENV_LOADED: Path | None = None
_DOTENV_ATTEMPTED = False


def env_name(attribute: str) -> str:
    """Return the environment variable carrying ``attribute``.

    Examples
    --------
    >>> env_name("projectName")
    'LOGHUB_PROJECT_NAME'
    >>> env_name("maxIOThreadSizeInPool")
    'LOGHUB_MAX_IO_THREAD_SIZE_IN_POOL'
    >>> env_name("packageTimeoutInMS")
    'LOGHUB_PACKAGE_TIMEOUT_IN_MS'
    """

    return ENV_PREFIX + _WORD_BOUNDARY.sub("_", attribute).upper()


def attributes_from_env(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect configured attributes from ``environ`` (``os.environ`` by default).

    Unset variables are omitted so :func:`build_settings` applies its defaults.
    ``LOGHUB_PRODUCER_FACTORY`` is returned as ``producerFactory``.
    """

    source = os.environ if environ is None else environ
    attributes: dict[str, str] = {}
    for attribute in ATTRIBUTE_NAMES:
        value = source.get(env_name(attribute))
        if value is not None:
            attributes[attribute] = value
    factory = source.get(PRODUCER_FACTORY_ENV_VAR)
    if factory:
        attributes["producerFactory"] = factory
    return attributes


def should_use_dotenv(*, explicit: bool | None = None, env_value: str | None = None) -> bool:
    """Decide whether ``.env`` loading is requested.

    An explicit CLI choice wins; otherwise ``LOGHUB_USE_DOTENV`` decides.

    Examples
    --------
    >>> should_use_dotenv(explicit=False, env_value="1")
    False
    >>> should_use_dotenv(env_value="yes")
    True
    >>> should_use_dotenv()
    False
    """

    if explicit is not None:
        return explicit
    if env_value is None:
        return False
    return env_value.strip().lower() in _TRUTHY


def enable_dotenv(search_from: Path | None = None) -> Path | None:
    """Load the nearest ``.env`` without overriding existing variables.

    The search walks upwards from ``search_from`` (the current working
    directory by default). The first successful load is remembered; later
    calls return the cached path.
    """

    global _DOTENV_LOADED, _DOTENV_ATTEMPTED
    with _DOTENV_LOCK:
        if _DOTENV_ATTEMPTED:
            return _DOTENV_LOADED
        candidate: Path | None = None
        if search_from is None:
            found = find_dotenv(usecwd=True)
            candidate = Path(found) if found else None
        else:
            start = search_from.resolve()
            candidate = next(
                (directory / ".env" for directory in (start, *start.parents) if (directory / ".env").is_file()),
                None,
            )
        _DOTENV_ATTEMPTED = True
        if candidate is None:
            logger.debug("No .env file found")
            return None
        load_dotenv(candidate, override=False)
        _DOTENV_LOADED = candidate.resolve()
        logger.debug("Loaded environment defaults from %s", _DOTENV_LOADED)
        return _DOTENV_LOADED


def _reset_dotenv_state_for_testing() -> None:
    """Forget previous :func:`enable_dotenv` calls."""

    global _DOTENV_LOADED, _DOTENV_ATTEMPTED
    with _DOTENV_LOCK:
        _DOTENV_LOADED = None
        _DOTENV_ATTEMPTED = False


__all__ = [
    "DOTENV_ENV_VAR",
    "ENV_PREFIX",
    "PRODUCER_FACTORY_ENV_VAR",
    "attributes_from_env",
    "enable_dotenv",
    "env_name",
    "should_use_dotenv",
]
