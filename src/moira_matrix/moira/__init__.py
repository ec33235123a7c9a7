"""Client for the MIT Moira directory web service."""

from __future__ import annotations

from .client import Moira
from .principals import mit_kerb_from_principal
from .types import ListAttributes, ListMember, MemberType, UserAttributes

__all__ = [
    "ListAttributes",
    "ListMember",
    "MemberType",
    "Moira",
    "UserAttributes",
    "mit_kerb_from_principal",
]
