"""Ready-to-use Knox client handle with auth injection and retry.

A :class:`ClientHandle` is what :class:`~knoxauth.client.assembler.ClientAssembler`
produces: the server address, the key cache directory, the TLS transport
config and the auth callback, bound together.  A command dispatcher can
read those attributes directly, or use the handle as a context manager to
send requests through :mod:`httpx`:

- **Auth injection** -- the auth callback is called once on enter and its
  value is sent as the ``Authorization`` header.  An empty value means no
  header at all.
- **Mutual TLS** -- the :class:`~knoxauth.tls.transport.TransportConfig`
  becomes the client's ssl context; its server name is sent as SNI.
- **Retry with backoff** -- 5xx responses and network errors are retried
  with jittered exponential delay (about 1 s, 2 s, 4 s, ...).
- **Error mapping** -- 4xx/5xx responses raise typed
  :mod:`knoxauth.exceptions`.
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional, Union

import httpx

from knoxauth.exceptions import (
    AuthError,
    ConnectionError_,
    InvalidUsageError,
    NotFoundError,
    ServerError,
)
from knoxauth.models import RequestConfig
from knoxauth.output import get_output
from knoxauth.tls.transport import TransportConfig

AUTH_HEADER = "Authorization"


class ClientHandle:
    """Knox client bound to one host, identity and transport.

    The handle itself is immutable configuration; only the context-managed
    :class:`httpx.Client` is created and closed.

    Args:
        host: ``host[:port]`` of the Knox server.
        auth_handler: Callable returning the auth header value, or ``""``.
        key_folder: Directory of the local key cache (used by the
            dispatcher, not by the handle).
        transport: TLS settings.
        request_config: Timeout and retry settings.
        http_transport: Optional :mod:`httpx` transport replacing the
            network layer (for example :class:`httpx.MockTransport`).

    Example::

        with ClientHandle("knox:9000", resolver.header_value, keys, tls) as client:
            response = client.get("/v0/keys/")
    """

    def __init__(
        self,
        host: str,
        auth_handler: Callable[[], str],
        key_folder: Path,
        transport: TransportConfig,
        request_config: Optional[RequestConfig] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.host = host
        self.auth_handler = auth_handler
        self.key_folder = key_folder
        self.transport = transport
        self.request_config = request_config or RequestConfig()
        self._http_transport = http_transport
        self._auth_header: str = ""
        self._client: Optional[httpx.Client] = None

    @property
    def base_url(self) -> str:
        return f"https://{self.host}"

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> ClientHandle:
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=self.request_config.timeout,
            verify=self.transport.ssl_context(),
            transport=self._http_transport,
        )
        self._auth_header = self.auth_handler()
        if not self._auth_header:
            get_output().debug("No identity available, requests are unauthenticated")
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send a request with the resolved identity, retry, and error mapping.

        Args:
            method: HTTP method.
            path: URL path relative to :attr:`base_url`.
            params: Query parameters.
            headers: Extra request headers.  They cannot replace the
                ``Authorization`` header.
            json_body: JSON-serialisable body.
            data: Form-encoded body (Knox write endpoints use forms).

        Returns:
            The :class:`httpx.Response`.

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On any other error status, after retries for 5xx.
            ConnectionError_: On network or TLS failures after all retries.
            InvalidUsageError: If *path* is an absolute URL.
        """
        target = httpx.URL(path)
        if target.scheme or target.host:
            raise InvalidUsageError(
                f"Request path must be relative to {self.base_url}, got: {path}"
            )

        merged_headers: dict[str, Union[str, bytes]] = {"Accept": "application/json"}
        for name, value in (headers or {}).items():
            if name.lower() != AUTH_HEADER.lower():
                merged_headers[name] = value
        if self._auth_header:
            # Sent as UTF-8 bytes; the payload is never escaped.
            merged_headers[AUTH_HEADER] = self._auth_header.encode("utf-8")

        response = self._execute_with_retry(
            method.upper(), path, merged_headers, dict(params or {}), json_body, data
        )
        self._map_response_error(response)
        return response

    def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("DELETE", path, **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _backoff(attempt: int) -> float:
        """Jittered exponential delay so that many clients do not retry in step."""
        return (2 ** attempt) * random.uniform(0.5, 1.5)

    def _execute_with_retry(
        self,
        method: str,
        path: str,
        headers: dict[str, Union[str, bytes]],
        params: dict[str, Any],
        json_body: Any,
        data: Optional[dict[str, Any]],
    ) -> httpx.Response:
        assert self._client is not None, "Client not initialised -- use as context manager"

        max_retries = self.request_config.max_retries
        output = get_output()

        kwargs: dict[str, Any] = {
            "method": method,
            "url": path,
            "headers": headers,
            "params": params,
            "extensions": {"sni_hostname": self.transport.server_name},
        }
        if data is not None:
            kwargs["data"] = data
        elif json_body is not None:
            kwargs["json"] = json_body

        attempt = 0
        while True:
            try:
                response = self._client.request(**kwargs)
            except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt >= max_retries:
                    raise ConnectionError_(
                        f"Connection to {self.host} failed after {attempt + 1} attempts: {exc}"
                    ) from exc
                delay = self._backoff(attempt)
                output.debug(
                    f"Connection error: {exc}, retrying in {delay:.1f}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
            else:
                if response.status_code < 500 or attempt >= max_retries:
                    return response
                delay = self._backoff(attempt)
                output.debug(
                    f"Server error {response.status_code}, retrying in {delay:.1f}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
            time.sleep(delay)
            attempt += 1

    @staticmethod
    def _map_response_error(response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        # Knox wraps errors as {"status": "error", "code": ..., "message": ...}.
        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
            else:
                msg = str(detail)
        except ValueError:
            msg = response.text[:200] if response.text else ""

        full_msg = f"HTTP {status}: {msg}" if msg else f"HTTP {status}"
        if status in (401, 403):
            raise AuthError(full_msg)
        if status == 404:
            raise NotFoundError(full_msg)
        raise ServerError(full_msg)
