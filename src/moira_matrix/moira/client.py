"""Async client for the MIT Moira web service."""

from __future__ import annotations

import ssl
from functools import partial
from pathlib import Path
from typing import Any

import anyio
import httpx
import zeep
from zeep.helpers import serialize_object
from zeep.transports import AsyncTransport

from ..config import DEFAULT_CLASS_PREFIX, DEFAULT_WSDL_URL
from ..errors import ConfigError, NoAPIResult
from ..logging import get_logger
from .principals import mit_kerbs
from .types import ListAttributes, ListMember, UserAttributes

logger = get_logger("moira_matrix.moira")

SOAP_TIMEOUT_SECONDS = 300


def _client_ssl_context(key_file: Path, cert_file: Path) -> ssl.SSLContext:
    context = ssl.create_default_context()
    try:
        context.load_cert_chain(certfile=str(cert_file), keyfile=str(key_file))
    except (OSError, ssl.SSLError) as exc:
        raise ConfigError(
            f"cannot load client certificate {cert_file} / key {key_file}: {exc}"
        ) from exc
    return context


def _build_soap_client(wsdl_url: str, ssl_context: ssl.SSLContext) -> zeep.AsyncClient:
    # The WSDL is fetched synchronously through `wsdl_client`; calls go through
    # the async client. Both present the same client certificate.
    transport = AsyncTransport(
        client=httpx.AsyncClient(verify=ssl_context, timeout=SOAP_TIMEOUT_SECONDS),
        wsdl_client=httpx.Client(verify=ssl_context, timeout=SOAP_TIMEOUT_SECONDS),
    )
    return zeep.AsyncClient(wsdl_url, transport=transport)


def _as_records(payload: Any) -> list[Any]:
    if payload is None:
        return []
    if isinstance(payload, list):
        return payload
    return [payload]


class Moira:
    """Typed access to the Moira SOAP API.

    Build with `await Moira.initialize(key_file, cert_file)`; the constructor
    takes an already loaded SOAP client.
    """

    def __init__(self, soap: Any, *, class_prefix: str = DEFAULT_CLASS_PREFIX) -> None:
        self._soap = soap
        self.class_prefix = class_prefix

    @classmethod
    async def initialize(
        cls,
        key_file: Path,
        cert_file: Path,
        *,
        wsdl_url: str = DEFAULT_WSDL_URL,
        class_prefix: str = DEFAULT_CLASS_PREFIX,
    ) -> Moira:
        """Load the WSDL and authenticate with the given key/certificate pair.

        Raises:
            ConfigError: if the key or certificate cannot be loaded.
        """
        ssl_context = _client_ssl_context(key_file, cert_file)
        soap = await anyio.to_thread.run_sync(
            partial(_build_soap_client, wsdl_url, ssl_context)
        )
        logger.info("moira.initialized", wsdl_url=wsdl_url)
        return cls(soap, class_prefix=class_prefix)

    async def aclose(self) -> None:
        transport = getattr(self._soap, "transport", None)
        if transport is None:
            return
        await transport.aclose()
        wsdl_client = getattr(transport, "wsdl_client", None)
        if wsdl_client is not None:
            wsdl_client.close()

    def describe_operations(self) -> list[str]:
        """List every operation the endpoint offers, wrapped or not."""
        names: set[str] = set()
        for service in self._soap.wsdl.services.values():
            for port in service.ports.values():
                names.update(port.binding.all())
        return sorted(names)

    async def _api_call(self, method: str, **args: Any) -> Any:
        logger.debug("moira.api_call", method=method, args=args)
        result = await self._soap.service[method](**args)
        if result is None:
            raise NoAPIResult(f"{method} didn't return anything!")
        payload = serialize_object(result, dict)
        key = f"{method}Return"
        if isinstance(payload, dict) and key in payload:
            return payload[key]
        return payload

    async def get_members_of_list(
        self, list_name: str, recursive: bool = False
    ) -> list[ListMember]:
        """Members of a list, including members of sublists when `recursive`."""
        payload = await self._api_call(
            "getListMembership",
            listName=list_name,
            recursiveSearch=recursive,
            # 0 means no limit.
            maxReturnCount=0,
        )
        return [ListMember.from_payload(item) for item in _as_records(payload)]

    async def get_mit_members_of_list(self, list_name: str) -> list[str]:
        """Kerbs of every MIT user on a list, sublists expanded.

        USER members come first, then KERBEROS members with an MIT
        principal. Duplicates are kept.
        """
        members = await self.get_members_of_list(list_name, recursive=True)
        users = [m.member for m in members if m.member_type == "USER"]
        principals = [m.member for m in members if m.member_type == "KERBEROS"]
        return users + mit_kerbs(principals)

    async def get_list_attributes(self, list_name: str) -> ListAttributes:
        records = _as_records(
            await self._api_call("getListAttributes", listName=list_name)
        )
        if not records:
            raise NoAPIResult(f"getListAttributes returned no record for {list_name!r}")
        return ListAttributes.from_payload(records[0])

    async def get_user_attributes(self, kerb: str) -> UserAttributes:
        records = _as_records(
            await self._api_call("getUserAttributes", memberID=kerb)
        )
        if not records:
            raise NoAPIResult(f"getUserAttributes returned no record for {kerb!r}")
        return UserAttributes.from_payload(records[0])

    async def get_user_name(self, kerb: str) -> str:
        attributes = await self.get_user_attributes(kerb)
        return attributes.full_name

    async def get_user_lists(self, kerb: str) -> list[str]:
        payload = await self._api_call(
            "getUserLists", memberID=kerb, memberType="USER"
        )
        return [str(name) for name in _as_records(payload)]

    async def get_user_classes(self, kerb: str, prefix: str | None = None) -> list[str]:
        """Lists of `kerb` whose name starts with `prefix` (default `class_prefix`)."""
        if prefix is None:
            prefix = self.class_prefix
        lists = await self.get_user_lists(kerb)
        return [name for name in lists if name.startswith(prefix)]
