"""Protocols the application layer depends on."""

from __future__ import annotations

from .producer import ProducerFactory, ProducerPort, SendCallback, SendResult

__all__ = ["ProducerFactory", "ProducerPort", "SendCallback", "SendResult"]
