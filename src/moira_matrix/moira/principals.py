"""Kerberos principal handling for MIT realms."""

from __future__ import annotations

from collections.abc import Iterable

ATHENA_REALMS = frozenset({"ATHENA.MIT.EDU", "MIT.EDU"})
ROOT_INSTANCE = "root@ATHENA.MIT.EDU"


def mit_kerb_from_principal(principal: str) -> str | None:
    """Return the kerb for an MIT principal, or None for anything else.

    Accepts `kerb/root@ATHENA.MIT.EDU` and `kerb@ATHENA.MIT.EDU` /
    `kerb@MIT.EDU`. Matching is exact; other instances and realms are
    rejected.
    """
    if "/" in principal:
        kerb, _, instance = principal.partition("/")
        return kerb if instance == ROOT_INSTANCE else None
    kerb, _, realm = principal.partition("@")
    return kerb if realm in ATHENA_REALMS else None


def mit_kerbs(principals: Iterable[str]) -> list[str]:
    kerbs: list[str] = []
    for principal in principals:
        kerb = mit_kerb_from_principal(principal)
        if kerb is not None:
            kerbs.append(kerb)
    return kerbs
