"""Typed views of Moira SOAP payloads."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Literal, TypeVar, cast

MemberType = Literal["USER", "LIST", "STRING", "KERBEROS"]

_T = TypeVar("_T")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _from_payload(cls: type[_T], payload: Mapping[str, Any]) -> _T:
    # Wire names are camelCase; missing fields keep their defaults.
    values: dict[str, Any] = {}
    for f in fields(cast(Any, cls)):
        key = _camel(f.name)
        if key in payload and payload[key] is not None:
            values[f.name] = payload[key]
    return cls(**values)


@dataclass(frozen=True, slots=True)
class ListMember:
    list_name: str
    member: str
    member_type: MemberType

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ListMember:
        return cls(
            list_name=str(payload.get("list") or ""),
            member=str(payload.get("member") or ""),
            member_type=cast(MemberType, str(payload.get("type") or "")),
        )


@dataclass(frozen=True, slots=True)
class ListAttributes:
    list_name: str = ""
    description: str = ""
    ace_name: str = ""
    ace_type: MemberType | None = None
    memace_name: str = ""
    memace_type: MemberType | None = None
    active_list: bool = False
    hidden_list: bool = False
    public_list: bool = False
    mail_list: bool = False
    mailman: bool = False
    mailman_server: str = ""
    group: bool = False
    nfsgroup: bool = False
    pacs_list: bool = False
    gid: str = ""
    modby: str = ""
    modtime: str = ""
    modwith: str = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ListAttributes:
        return _from_payload(cls, payload)


@dataclass(frozen=True, slots=True)
class UserAttributes:
    user_name: str = ""
    first: str = ""
    middle: str = ""
    last: str = ""
    uid: str = ""
    mitid: str = ""
    uclass: str = ""
    state: str = ""
    shell: str = ""
    winconsoleshell: str = ""
    winhomedir: str = ""
    winprofiledir: str = ""
    comment: str = ""
    signature: str = ""
    secure: str = ""
    created: str = ""
    creator: str = ""
    modby: str = ""
    modtime: str = ""
    modwith: str = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> UserAttributes:
        return _from_payload(cls, payload)

    @property
    def full_name(self) -> str:
        # An absent middle name leaves a double space behind.
        return f"{self.first} {self.middle} {self.last}".replace("  ", " ")
