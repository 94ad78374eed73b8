r"""Parameter validation run before the request is prepared.

Constraints are attached to parameter descriptors. When property checks
are enabled, the fields of dataclass arguments are validated too, using
the constraints declared in the field metadata:

```python
from dataclasses import dataclass, field

from apiaction.validation import Length, Required


@dataclass
class User:
    name: str = field(metadata={"constraints": (Required(), Length(min=1))})
```
"""

from __future__ import annotations

__all__ = [
    "Constraint",
    "Length",
    "OneOf",
    "Pattern",
    "Range",
    "Required",
    "validate_parameter",
    "validate_value",
]

import dataclasses
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from apiaction.exceptions import ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from apiaction.descriptors import ParameterDescriptor


class Constraint(ABC):
    r"""A constraint on a value."""

    @abstractmethod
    def check(self, value: Any) -> str | None:
        r"""Check a value.

        Args:
            value: The value to check.

        Returns:
            A description of the violation, or ``None`` if the value
            satisfies the constraint.
        """


class Required(Constraint):
    r"""The value must not be ``None`` (nor an empty string)."""

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}()"

    def check(self, value: Any) -> str | None:
        if value is None or value == "":
            return "a value is required"
        return None


class Range(Constraint):
    r"""The value must be within ``[min, max]``.

    ``None`` values are accepted; combine with ``Required`` to reject them.

    Args:
        min: The lower bound, or ``None`` for no lower bound.
        max: The upper bound, or ``None`` for no upper bound.

    Example:
        ```pycon
        >>> from apiaction.validation import Range
        >>> Range(min=1).check(0)
        'must be >= 1, got 0'
        >>> Range(min=1, max=10).check(5)

        ```
    """

    def __init__(self, min: float | None = None, max: float | None = None) -> None:  # noqa: A002
        if min is not None and max is not None and min > max:
            msg = f"min must be <= max, got min={min} and max={max}"
            raise ValueError(msg)
        self.min = min
        self.max = max

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(min={self.min}, max={self.max})"

    def check(self, value: Any) -> str | None:
        if value is None:
            return None
        try:
            if self.min is not None and value < self.min:
                return f"must be >= {self.min}, got {value}"
            if self.max is not None and value > self.max:
                return f"must be <= {self.max}, got {value}"
        except TypeError:
            bound = self.min if self.min is not None else self.max
            return f"must be comparable to {bound!r}, got {type(value).__name__}"
        return None


class Length(Constraint):
    r"""The length of the value must be within ``[min, max]``.

    ``None`` values are accepted.

    Args:
        min: The minimum length.
        max: The maximum length, or ``None`` for no maximum.
    """

    def __init__(self, min: int = 0, max: int | None = None) -> None:  # noqa: A002
        if min < 0:
            msg = f"min must be >= 0, got {min}"
            raise ValueError(msg)
        self.min = min
        self.max = max

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(min={self.min}, max={self.max})"

    def check(self, value: Any) -> str | None:
        if value is None:
            return None
        try:
            length = len(value)
        except TypeError:
            return f"must have a length, got {type(value).__name__}"
        if length < self.min:
            return f"length must be >= {self.min}, got {length}"
        if self.max is not None and length > self.max:
            return f"length must be <= {self.max}, got {length}"
        return None


class Pattern(Constraint):
    r"""The string value must fully match a regular expression.

    ``None`` values are accepted.

    Args:
        regex: The regular expression.
    """

    def __init__(self, regex: str | re.Pattern[str]) -> None:
        self.regex = re.compile(regex)

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}({self.regex.pattern!r})"

    def check(self, value: Any) -> str | None:
        if value is None:
            return None
        if self.regex.fullmatch(str(value)) is None:
            return f"must match {self.regex.pattern!r}, got {value!r}"
        return None


class OneOf(Constraint):
    r"""The value must be one of the given choices.

    Args:
        choices: The accepted values.
    """

    def __init__(self, choices: Iterable[Any]) -> None:
        self.choices = tuple(choices)

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}({self.choices})"

    def check(self, value: Any) -> str | None:
        if value is None or value in self.choices:
            return None
        return f"must be one of {self.choices}, got {value!r}"


def validate_value(name: str, value: Any, constraints: Iterable[Constraint]) -> None:
    r"""Check a value against constraints.

    Args:
        name: The name reported in the error.
        value: The value to check.
        constraints: The constraints, checked in order.

    Raises:
        ValidationError: On the first violated constraint.
    """
    for constraint in constraints:
        violation = constraint.check(value)
        if violation is not None:
            raise ValidationError(name, violation)


def validate_parameter(parameter: ParameterDescriptor, validate_properties: bool) -> None:
    r"""Validate the value bound to a parameter.

    Args:
        parameter: The bound parameter descriptor.
        validate_properties: If ``True`` and the value is a dataclass
            instance, also validate its fields with the constraints
            declared in ``field(metadata={"constraints": ...})``,
            recursively.

    Raises:
        ValidationError: If the value or one of its properties violates
            a constraint.

    Example:
        ```pycon
        >>> from apiaction.descriptors import ParameterDescriptor
        >>> from apiaction.validation import Range, validate_parameter
        >>> parameter = ParameterDescriptor("page", 0, constraints=(Range(min=1),), value=2)
        >>> validate_parameter(parameter, validate_properties=True)

        ```
    """
    validate_value(parameter.name, parameter.value, parameter.constraints)
    if validate_properties:
        _validate_properties(parameter.name, parameter.value)


def _validate_properties(path: str, value: Any) -> None:
    if not dataclasses.is_dataclass(value) or isinstance(value, type):
        return
    for item in dataclasses.fields(value):
        field_path = f"{path}.{item.name}"
        field_value = getattr(value, item.name)
        validate_value(field_path, field_value, item.metadata.get("constraints", ()))
        _validate_properties(field_path, field_value)
