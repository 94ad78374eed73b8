r"""Immutable descriptions of the API methods invoked by the pipeline.

A descriptor is built once per method signature with
``ActionDescriptorBuilder`` and never mutated afterwards. Each call binds
its argument values with ``ActionDescriptor.bind``, which returns a new
descriptor.

Example:
    ```pycon
    >>> from apiaction.descriptors import ActionDescriptorBuilder
    >>> from apiaction.hooks import HttpMethod, JsonReturn, QueryParam
    >>> descriptor = (
    ...     ActionDescriptorBuilder("list_users")
    ...     .hook(HttpMethod("GET", "/users"))
    ...     .parameter("page", QueryParam(), annotation=int, default=1)
    ...     .returns(JsonReturn(), list)
    ...     .build()
    ... )
    >>> [p.name for p in descriptor.parameters]
    ['page']
    >>> descriptor.bind(page=3).parameters[0].value
    3

    ```
"""

from __future__ import annotations

__all__ = [
    "MISSING",
    "ActionDescriptor",
    "ActionDescriptorBuilder",
    "ParameterDescriptor",
    "ReturnDescriptor",
]

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from typing import Self

    from apiaction.hooks.base import ActionHook, ParameterHook, ReturnHook
    from apiaction.validation import Constraint


class _Missing:
    r"""Sentinel marking a parameter without a default value."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass(frozen=True)
class ParameterDescriptor:
    r"""Description of a method parameter.

    Attributes:
        name: The parameter name.
        index: The position of the parameter in the signature.
        hooks: The parameter hooks, in declaration order.
        constraints: The constraints checked by the validator.
        annotation: The declared type of the parameter, if any.
        default: The default value, or ``MISSING`` if the parameter is
            required.
        value: The argument value bound for the current call.
    """

    name: str
    index: int
    hooks: tuple[ParameterHook, ...] = ()
    constraints: tuple[Constraint, ...] = ()
    annotation: Any = None
    default: Any = MISSING
    value: Any = None

    @property
    def required(self) -> bool:
        r"""``True`` if the parameter has no default value."""
        return self.default is MISSING


@dataclass(frozen=True)
class ReturnDescriptor:
    r"""Description of the return value of a method.

    Attributes:
        hook: The hook that materializes the result.
        return_type: The declared return type, or ``None`` if undeclared.
    """

    hook: ReturnHook
    return_type: Any = None


@dataclass(frozen=True)
class ActionDescriptor:
    r"""Description of an API method.

    Attributes:
        name: The method name, used in logs.
        parameters: The parameters, in declaration order.
        hooks: The method-level hooks, in declaration order.
        returns: The return description.
    """

    name: str
    parameters: tuple[ParameterDescriptor, ...]
    hooks: tuple[ActionHook, ...]
    returns: ReturnDescriptor

    def parameter(self, name: str) -> ParameterDescriptor:
        r"""Return the parameter called ``name``.

        Raises:
            KeyError: If there is no such parameter.
        """
        for parameter in self.parameters:
            if parameter.name == name:
                return parameter
        raise KeyError(name)

    def bind(self, *args: Any, **kwargs: Any) -> ActionDescriptor:
        r"""Return a copy of the descriptor bound to argument values.

        Positional arguments are matched by index and keyword arguments
        by name. Missing arguments take the parameter default.

        Returns:
            The bound descriptor.

        Raises:
            TypeError: If there are too many positional arguments, an
                unknown keyword argument, an argument given twice, or a
                missing required argument.
        """
        if len(args) > len(self.parameters):
            msg = (
                f"{self.name}() takes {len(self.parameters)} argument(s) "
                f"but {len(args)} were given"
            )
            raise TypeError(msg)
        unknown = set(kwargs).difference(p.name for p in self.parameters)
        if unknown:
            msg = f"{self.name}() got unexpected keyword argument(s): {', '.join(sorted(unknown))}"
            raise TypeError(msg)

        bound = []
        for parameter in self.parameters:
            if parameter.index < len(args):
                if parameter.name in kwargs:
                    msg = f"{self.name}() got multiple values for argument '{parameter.name}'"
                    raise TypeError(msg)
                value = args[parameter.index]
            elif parameter.name in kwargs:
                value = kwargs[parameter.name]
            elif not parameter.required:
                value = parameter.default
            else:
                msg = f"{self.name}() missing required argument: '{parameter.name}'"
                raise TypeError(msg)
            bound.append(replace(parameter, value=value))
        return replace(self, parameters=tuple(bound))


class ActionDescriptorBuilder:
    r"""Builder of ``ActionDescriptor``.

    Args:
        name: The method name.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._parameters: list[ParameterDescriptor] = []
        self._hooks: list[ActionHook] = []
        self._returns: ReturnDescriptor | None = None

    def parameter(
        self,
        name: str,
        *hooks: ParameterHook,
        constraints: tuple[Constraint, ...] | list[Constraint] = (),
        annotation: Any = None,
        default: Any = MISSING,
    ) -> Self:
        r"""Append a parameter.

        Args:
            name: The parameter name.
            *hooks: The parameter hooks, in execution order.
            constraints: The constraints checked by the validator.
            annotation: The declared type of the parameter.
            default: The default value. The parameter is required if
                not given.

        Returns:
            The builder.
        """
        self._parameters.append(
            ParameterDescriptor(
                name=name,
                index=len(self._parameters),
                hooks=tuple(hooks),
                constraints=tuple(constraints),
                annotation=annotation,
                default=default,
            )
        )
        return self

    def hook(self, *hooks: ActionHook) -> Self:
        r"""Append method-level hooks.

        Returns:
            The builder.
        """
        self._hooks.extend(hooks)
        return self

    def returns(self, hook: ReturnHook, return_type: Any = None) -> Self:
        r"""Set the return hook and the declared return type.

        Returns:
            The builder.
        """
        self._returns = ReturnDescriptor(hook=hook, return_type=return_type)
        return self

    def build(self) -> ActionDescriptor:
        r"""Build the descriptor.

        Returns:
            The immutable descriptor.

        Raises:
            ValueError: If no return hook was set or if two parameters
                have the same name.
        """
        if self._returns is None:
            msg = f"action '{self._name}' has no return hook"
            raise ValueError(msg)
        names = [p.name for p in self._parameters]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            msg = f"action '{self._name}' has duplicated parameter(s): {', '.join(duplicates)}"
            raise ValueError(msg)
        return ActionDescriptor(
            name=self._name,
            parameters=tuple(self._parameters),
            hooks=tuple(self._hooks),
            returns=self._returns,
        )
