"""Resolution of producer factories from callables or import strings.

Purpose
-------
Declarative configuration (``logging.config.dictConfig``, environment
variables, the CLI) can only carry strings. This module maps such strings to
the :data:`ProducerFactory` callables the handler needs.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

from lib_log_loghub.application.ports.producer import ProducerFactory
from lib_log_loghub.domain.errors import ConfigurationError

from .console_producer import create_console_producer

BUILTIN_FACTORIES: dict[str, ProducerFactory] = {
    "console": create_console_producer,
}
#: Short names accepted in place of an import path.


def load_producer_factory(spec: Any) -> ProducerFactory:
    """Return the factory described by ``spec``.

    ``spec`` may be a callable, a builtin short name (``"console"``), or an
    import path in ``"package.module:attribute"`` (or dotted) form.

    Examples
    --------
    >>> load_producer_factory("console") is create_console_producer
    True
    >>> load_producer_factory("lib_log_loghub.adapters.console_producer:create_console_producer") is create_console_producer
    True
    """

    if callable(spec):
        return spec
    if not isinstance(spec, str) or not spec.strip():
        raise ConfigurationError("producerFactory", "Config value [producerFactory] must not be empty.")
    name = spec.strip()
    if name in BUILTIN_FACTORIES:
        return BUILTIN_FACTORIES[name]
    if ":" in name:
        module_name, _, attribute = name.partition(":")
    else:
        module_name, _, attribute = name.rpartition(".")
    if not module_name or not attribute:
        raise ConfigurationError("producerFactory", f"Config value [producerFactory] is not an import path: {name!r}")
    try:
        target: Any = import_module(module_name)
        for part in attribute.split("."):
            target = getattr(target, part)
    except (ImportError, AttributeError) as exc:
        raise ConfigurationError("producerFactory", f"Config value [producerFactory] cannot be imported: {name!r}") from exc
    if not callable(target):
        raise ConfigurationError("producerFactory", f"Config value [producerFactory] is not callable: {name!r}")
    return target


__all__ = ["BUILTIN_FACTORIES", "load_producer_factory"]
