"""Thin wrapper around the nio client."""

from __future__ import annotations

from .client import MatrixClient

__all__ = ["MatrixClient"]
