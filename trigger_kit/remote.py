"""Typed remote call: one authenticated HTTP request, parsed JSON or RemoteError.

Connectors supply an error parser that unwraps their provider's error body
into ``(message, error_type)``. Request headers never reach logs or errors,
and configured secrets are masked in logged URLs.
"""

import json
import logging
from collections.abc import Callable, Iterable
from typing import Any

import httpx

from trigger_kit.errors import (
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    RemoteError,
)

logger = logging.getLogger(__name__)

ErrorParser = Callable[[Any, int], tuple[str, str | None]]

_DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)


def default_error_parser(body: Any, status_code: int) -> tuple[str, str | None]:
    """Fallback: use a string body or a ``message`` key, else the status code."""
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, str):
            return message, None
    elif isinstance(body, str) and body:
        return body, None
    return f"HTTP {status_code}", None


def cleanup_query(query: dict[str, Any] | None) -> dict[str, Any] | None:
    """Drop None values so they are not sent as empty parameters."""
    if not query:
        return None
    return {key: value for key, value in query.items() if value is not None}


def _parse_retry_after(response: httpx.Response) -> int | None:
    value = response.headers.get("Retry-After")
    if value and value.isdigit():
        return int(value)
    return None


class RemoteCaller:
    """Performs single remote calls for one connector.

    Usage:
        remote = RemoteCaller("airtable", client=shared_client,
                              error_parser=airtable_error_parser)
        data = await remote.request("GET", url, query={"offset": cursor},
                                    headers=bearer, log_tag="getBases")
    """

    def __init__(
        self,
        system: str,
        client: httpx.AsyncClient | None = None,
        error_parser: ErrorParser = default_error_parser,
        secrets: Iterable[str] = (),
        timeout: float | httpx.Timeout | None = None,
    ) -> None:
        self.system = system
        self._client = client
        self._error_parser = error_parser
        self._secrets = [secret for secret in secrets if secret]
        self._timeout = timeout if timeout is not None else _DEFAULT_TIMEOUT

    def _redact(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, "***")
        return text

    async def request(
        self,
        method: str,
        url: str,
        query: dict[str, Any] | None = None,
        body: Any = None,
        form: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        log_tag: str = "",
    ) -> Any:
        """Perform one call and return the parsed JSON body.

        Args:
            method: HTTP method
            url: Absolute URL
            query: Query parameters; None values are dropped
            body: JSON body
            form: Form-encoded body (takes precedence over ``body``)
            headers: Extra request headers (auth); never logged
            log_tag: Operation name used in log lines

        Returns:
            Parsed JSON, or ``{}`` for an empty response body

        Raises:
            RemoteError: On non-2xx, non-JSON 2xx or transport failure
        """
        method = method.upper()
        params = cleanup_query(query)
        logger.debug(
            f"[{log_tag}] api request: [{method}::{self._redact(url)}] "
            f"q=[{self._redact(json.dumps(params, default=str))}]"
        )

        kwargs: dict[str, Any] = {"params": params, "headers": headers}
        if form is not None:
            kwargs["data"] = cleanup_query(form)
        elif body is not None:
            kwargs["json"] = body

        try:
            if self._client is not None:
                response = await self._client.request(method, url, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            # str(e) may embed the request URL
            message = f"Request to {self.system} failed: {self._redact(str(e)) or type(e).__name__}"
            logger.error(f"[{log_tag}] error: {message}")
            raise RemoteError(message, system=self.system, retriable=True) from e

        if response.is_success:
            return self._parse_success(response, log_tag)

        raise self._build_error(response, log_tag)

    def _parse_success(self, response: httpx.Response, log_tag: str) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            message = f"Malformed response from {self.system}: expected JSON"
            logger.error(f"[{log_tag}] error: {message}")
            raise RemoteError(message, system=self.system) from e

    def _build_error(self, response: httpx.Response, log_tag: str) -> RemoteError:
        try:
            payload: Any = response.json()
        except ValueError:
            payload = response.text

        message, error_type = self._error_parser(payload, response.status_code)
        message = self._redact(message)
        status = response.status_code
        logger.error(f"[{log_tag}] error: [{status}] {message}")

        if status == 401:
            return AuthenticationError(
                message, http_status_code=status, error_type=error_type, system=self.system
            )
        if status == 404:
            return NotFoundError(
                message, http_status_code=status, error_type=error_type, system=self.system
            )
        if status == 429:
            return RateLimitError(
                message,
                retry_after=_parse_retry_after(response),
                http_status_code=status,
                error_type=error_type,
                system=self.system,
            )
        return RemoteError(
            message,
            http_status_code=status,
            error_type=error_type,
            system=self.system,
            retriable=status >= 500,
        )
