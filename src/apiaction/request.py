r"""Mutable representation of the outgoing request.

``ApiRequest`` is created by the context during the prepare phase and
edited in place by the hooks. It is turned into an ``httpx.Request`` only
when the transport sends it, so the httpx client defaults (base URL,
headers, cookies) are applied at that point.
"""

from __future__ import annotations

__all__ = ["ApiRequest"]

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from apiaction.exceptions import HookError

if TYPE_CHECKING:
    from collections.abc import Iterable

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


@dataclass
class ApiRequest:
    r"""Outgoing request edited by the hooks.

    The body forms ``content``, ``json`` and ``data`` are mutually
    exclusive: the setters clear the other forms.

    Args:
        method: The HTTP method.
        url: The URL template, absolute or relative to the client base
            URL. ``{name}`` placeholders are expanded from
            ``path_params``.
        headers: The request headers. Duplicated names are kept in
            insertion order.
        params: The query string pairs, in insertion order.
        path_params: The values of the URL placeholders.
        content: A raw body.
        json: A body serialized as JSON.
        data: Form fields.

    Example:
        ```pycon
        >>> from apiaction.request import ApiRequest
        >>> request = ApiRequest(method="GET", url="/users/{user_id}")
        >>> request.set_path_param("user_id", 42)
        >>> request.add_query("fields", "name")
        >>> request.add_header("X-Trace", "abc")
        >>> request.resolved_url()
        '/users/42'
        >>> request.params
        [('fields', 'name')]

        ```
    """

    method: str = "GET"
    url: str = ""
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    params: list[tuple[str, str]] = field(default_factory=list)
    path_params: dict[str, str] = field(default_factory=dict)
    content: bytes | str | None = None
    json: Any = None
    data: dict[str, Any] | None = None

    def add_header(self, name: str, value: str) -> None:
        r"""Append a header, keeping existing values with the same name.

        Args:
            name: The header name.
            value: The header value.
        """
        self.headers = httpx.Headers([*self.headers.raw, (name, value)])

    def set_header(self, name: str, value: str) -> None:
        r"""Set a header, replacing existing values with the same name.

        Args:
            name: The header name.
            value: The header value.
        """
        self.headers[name] = value

    def add_query(self, name: str, value: Any) -> None:
        r"""Append a query string pair.

        Args:
            name: The query parameter name.
            value: The value. It is converted with ``_format_value``.
        """
        self.params.append((name, _format_value(value)))

    def extend_query(self, name: str, values: Iterable[Any]) -> None:
        r"""Append one query string pair per value.

        Args:
            name: The query parameter name.
            values: The values.
        """
        for value in values:
            self.add_query(name, value)

    def set_path_param(self, name: str, value: Any) -> None:
        r"""Set the value of the ``{name}`` URL placeholder.

        Args:
            name: The placeholder name.
            value: The value. It is percent-encoded when the URL is
                resolved.
        """
        self.path_params[name] = _format_value(value)

    def set_json(self, value: Any) -> None:
        r"""Set a JSON body and clear the other body forms."""
        self.json = value
        self.content = None
        self.data = None

    def set_content(self, value: bytes | str) -> None:
        r"""Set a raw body and clear the other body forms."""
        self.content = value
        self.json = None
        self.data = None

    def add_form_field(self, name: str, value: Any) -> None:
        r"""Add a form field and clear the other body forms.

        Args:
            name: The field name.
            value: The field value.
        """
        if self.data is None:
            self.data = {}
        self.data[name] = value
        self.content = None
        self.json = None

    def resolved_url(self) -> str:
        r"""Return the URL with its placeholders expanded.

        Returns:
            The expanded URL.

        Raises:
            HookError: If a placeholder has no value.
        """

        def _substitute(match: re.Match[str]) -> str:
            name = match.group(1)
            if name not in self.path_params:
                msg = f"no value for the placeholder '{{{name}}}' of URL '{self.url}'"
                raise HookError(msg)
            return quote(self.path_params[name], safe="")

        return _PLACEHOLDER.sub(_substitute, self.url)

    def build(self, client: httpx.AsyncClient) -> httpx.Request:
        r"""Build the ``httpx.Request`` sent by the transport.

        Args:
            client: The client whose defaults (base URL, headers,
                cookies, timeout) apply to the request.

        Returns:
            The request to send.
        """
        return client.build_request(
            self.method,
            self.resolved_url(),
            headers=self.headers,
            params=self.params or None,
            content=self.content,
            json=self.json,
            data=self.data,
        )


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
