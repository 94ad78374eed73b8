r"""Configuration shared by all the actions of an API client.

The configuration is read concurrently by every in-flight action, so it
is immutable: ``merge`` and ``with_hooks`` return new instances and the
global hooks are stored as a tuple snapshot.
"""

from __future__ import annotations

__all__ = ["DEFAULT_TIMEOUT", "ApiConfig"]

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from apiaction.hooks.base import ActionHook
    from apiaction.transport import Transport


# Default timeout in seconds of the httpx client created by AsyncApiClient
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class ApiConfig:
    r"""Configuration of the execution pipeline.

    Args:
        transport: The transport used to send the requests.
        validate_parameters: If ``False``, the parameter validator is
            not invoked at all.
        validate_properties: If ``True``, the validator also checks the
            fields of dataclass arguments.
        global_hooks: The hooks run around the dispatch of every action,
            before the method-level hooks.

    Raises:
        ValueError: If ``transport`` is ``None``.

    Example:
        ```pycon
        >>> from unittest.mock import AsyncMock
        >>> from apiaction.config import ApiConfig
        >>> from apiaction.hooks import LoggingHook
        >>> config = ApiConfig(transport=AsyncMock())
        >>> config.validate_parameters
        True
        >>> config.with_hooks(LoggingHook()).global_hooks
        (LoggingHook(level=10),)
        >>> config.global_hooks  # Original unchanged
        ()

        ```
    """

    transport: Transport
    validate_parameters: bool = True
    validate_properties: bool = True
    global_hooks: tuple[ActionHook, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.transport is None:
            msg = "transport must not be None"
            raise ValueError(msg)
        object.__setattr__(self, "global_hooks", tuple(self.global_hooks))

    def merge(self, **overrides: Any) -> ApiConfig:
        r"""Create a new config with specified parameters overridden.

        Only non-``None`` override values are applied.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new ApiConfig instance with overrides applied.
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)

    def with_hooks(self, *hooks: ActionHook) -> ApiConfig:
        r"""Create a new config with global hooks appended.

        Actions that already started keep iterating the hooks of the
        config they were created with.

        Args:
            *hooks: The hooks to append.

        Returns:
            A new ApiConfig instance.
        """
        return replace(self, global_hooks=(*self.global_hooks, *hooks))
