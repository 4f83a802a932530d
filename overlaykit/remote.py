import time
from collections.abc import Callable
from typing import Any, Protocol

import httpx

from overlaykit.constants import LOGGER_NAME
from overlaykit.dom.interface import DomBridge
from overlaykit.exceptions import RemoteRequestError
from overlaykit.logging import LoggerType, get_logger
from overlaykit.schema.config import RemoteConfig
from overlaykit.schema.mutation import RemoteMutation
from overlaykit.settings import settings
from overlaykit.utils.callback import run_callback

__all__ = ("Transport", "HttpxTransport", "RemoteContentLoader", "apply_mutation")


class Transport(Protocol):
    """Single-shot asynchronous request returning the decoded JSON body."""

    async def request(self, method: str, url: str, *, query: dict[str, Any] | None = None) -> Any: ...


class HttpxTransport:
    """
    Transport over httpx.

    Args:
        client: Client to send every request with. Its owner closes it, or calls `aclose()`.
        client_kwargs: Used to build a short-lived client per request when no client is given,
            so requests made from separate event loops never share a connection pool.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, **client_kwargs: Any):
        self._client = client
        self._client_kwargs = {"timeout": settings.REQUEST_TIMEOUT} | client_kwargs

    async def request(self, method: str, url: str, *, query: dict[str, Any] | None = None) -> Any:
        request_kwargs: dict[str, Any] = {"headers": {"Accept": "application/json"}}
        if query:
            if method.lower() == "get":
                request_kwargs["params"] = query
            else:
                request_kwargs["data"] = query

        if self._client is not None:
            response = await self._client.request(method.upper(), url, **request_kwargs)
        else:
            async with httpx.AsyncClient(**self._client_kwargs) as client:
                response = await client.request(method.upper(), url, **request_kwargs)

        if response.status_code != 200:
            raise RemoteRequestError(response.status_code, f"Request failed with status code: {response.status_code}")
        return response.json()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class RemoteContentLoader:
    def __init__(self, transport: Transport | None = None, logger: LoggerType | None = None) -> None:
        self._transport = transport or HttpxTransport()
        self._logger = logger or get_logger(LOGGER_NAME)

    def build_query(self, remote: RemoteConfig) -> dict[str, Any]:
        query = dict(remote.data or {})
        if not remote.cache:
            query["_"] = str(int(time.time() * 1000))
        return query

    async def fetch(self, remote: RemoteConfig, query: dict[str, Any] | None = None) -> RemoteMutation:
        """Request `remote.url` and parse the response as a RemoteMutation.

        Raises:
            RemoteRequestError: If the endpoint answers with a non-success status.
            pydantic.ValidationError: If the payload is not a valid mutation.
        """
        payload = await self._transport.request(remote.method, remote.url, query=query)
        return RemoteMutation.model_validate(payload or {})

    async def load(self, remote: RemoteConfig, on_success: Callable[[RemoteMutation], Any]) -> bool:
        """
        Fetch the remote mutation and hand it to `on_success`.

        `remote.on_before_send` runs first with the query dict, which it may annotate;
        returning False cancels the request without any further callback.
        `remote.on_error` receives the failure, and `remote.on_complete` runs last
        once the request has finished either way.

        Returns:
            True if `on_success` was called.
        """
        query = self.build_query(remote)
        if run_callback(remote.on_before_send, query, name="on_before_send", logger=self._logger) is False:
            self._logger.info("remote-fetch", url=remote.url, status="cancelled")
            return False

        self._logger.info("remote-fetch", url=remote.url, method=remote.method, status="pending")
        try:
            mutation = await self.fetch(remote, query)
        except Exception as e:
            self._logger.warning("remote-fetch", url=remote.url, status="failed", reason=str(e))
            run_callback(remote.on_error, e, name="on_error", logger=self._logger)
            return False
        else:
            self._logger.info("remote-fetch", url=remote.url, status="completed")
            on_success(mutation)
            return True
        finally:
            run_callback(remote.on_complete, name="on_complete", logger=self._logger)


def apply_mutation(dom: DomBridge, mutation: RemoteMutation, logger: LoggerType | None = None) -> bool:
    """
    Apply a RemoteMutation to the document.

    Steps run in a fixed order so later ones can target nodes introduced by earlier
    ones: replace, append, set_content, inject_script, then reload or redirect.

    Returns:
        True if a reload or redirect was issued. Nothing else should run on this page afterwards.
    """
    logger = logger or get_logger(LOGGER_NAME)

    for patch in mutation.replace:
        for element in dom.find_by_selector(None, patch.selector):
            dom.replace_with(element, patch.html)
    for patch in mutation.append:
        for element in dom.find_by_selector(None, patch.selector):
            dom.append_html(element, patch.html)
    for patch in mutation.set_content:
        for element in dom.find_by_selector(None, patch.selector):
            dom.set_html(element, patch.html)

    if mutation.inject_script:
        dom.append_html(dom.body, mutation.inject_script)

    if mutation.reload:
        logger.info("apply-mutation", action="reload")
        dom.reload()
        return True
    if mutation.redirect_url:
        logger.info("apply-mutation", action="redirect", url=mutation.redirect_url)
        dom.navigate(mutation.redirect_url)
        return True

    return False
