r"""Unit tests for the parameter validator."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from apiaction.descriptors import ParameterDescriptor
from apiaction.exceptions import ValidationError
from apiaction.validation import (
    Length,
    OneOf,
    Pattern,
    Range,
    Required,
    validate_parameter,
    validate_value,
)


@dataclass
class Address:
    city: str = field(metadata={"constraints": (Required(),)})


@dataclass
class User:
    name: str = field(metadata={"constraints": (Required(), Length(max=5))})
    age: int = field(default=0, metadata={"constraints": (Range(min=0),)})
    address: Address | None = None


###############################
#     Tests for constraints   #
###############################


@pytest.mark.parametrize(
    ("constraint", "value", "expected"),
    [
        (Required(), None, "a value is required"),
        (Required(), "", "a value is required"),
        (Required(), 0, None),
        (Range(min=1), 0, "must be >= 1, got 0"),
        (Range(max=10), 11, "must be <= 10, got 11"),
        (Range(min=1, max=10), 5, None),
        (Range(min=1), None, None),
        (Length(min=2), "a", "length must be >= 2, got 1"),
        (Length(max=2), [1, 2, 3], "length must be <= 2, got 3"),
        (Range(min=1), "abc", "must be comparable to 1, got str"),
        (Range(max=2.5), [1], "must be comparable to 2.5, got list"),
        (Length(min=1, max=3), "ab", None),
        (Length(min=1), 5, "must have a length, got int"),
        (Pattern(r"[a-z]+"), "abc", None),
        (Pattern(r"[a-z]+"), "abc1", "must match '[a-z]+', got 'abc1'"),
        (OneOf(["asc", "desc"]), "asc", None),
        (OneOf(["asc", "desc"]), "up", "must be one of ('asc', 'desc'), got 'up'"),
    ],
)
def test_constraint_check(constraint: object, value: object, expected: str | None) -> None:
    assert constraint.check(value) == expected


def test_range_invalid_bounds() -> None:
    with pytest.raises(ValueError, match=r"min must be <= max"):
        Range(min=2, max=1)


def test_length_invalid_min() -> None:
    with pytest.raises(ValueError, match=r"min must be >= 0, got -1"):
        Length(min=-1)


def test_validate_value_first_violation_wins() -> None:
    with pytest.raises(ValidationError, match=r"a value is required") as exc_info:
        validate_value("q", None, [Required(), Length(min=1)])
    assert exc_info.value.parameter == "q"


#####################################
#     Tests for validate_parameter  #
#####################################


def test_validate_parameter_valid() -> None:
    parameter = ParameterDescriptor("page", 0, constraints=(Range(min=1),), value=1)
    validate_parameter(parameter, validate_properties=True)


def test_validate_parameter_invalid() -> None:
    parameter = ParameterDescriptor("page", 0, constraints=(Range(min=1),), value=0)
    with pytest.raises(ValidationError, match=r"invalid value for parameter 'page'"):
        validate_parameter(parameter, validate_properties=False)


def test_validate_parameter_checks_properties() -> None:
    parameter = ParameterDescriptor("user", 0, value=User(name="too long"))
    with pytest.raises(ValidationError) as exc_info:
        validate_parameter(parameter, validate_properties=True)
    assert exc_info.value.parameter == "user.name"


def test_validate_parameter_checks_nested_properties() -> None:
    parameter = ParameterDescriptor("user", 0, value=User(name="bob", address=Address(city="")))
    with pytest.raises(ValidationError) as exc_info:
        validate_parameter(parameter, validate_properties=True)
    assert exc_info.value.parameter == "user.address.city"


def test_validate_parameter_skips_properties_when_disabled() -> None:
    parameter = ParameterDescriptor("user", 0, value=User(name="too long", age=-1))
    validate_parameter(parameter, validate_properties=False)


def test_validate_parameter_ignores_dataclass_types() -> None:
    parameter = ParameterDescriptor("kind", 0, value=User)
    validate_parameter(parameter, validate_properties=True)


def test_validate_parameter_wrong_kind_names_parameter() -> None:
    """Test that a value of the wrong kind is reported as a validation
    error of its parameter."""
    page = ParameterDescriptor("page", 0, constraints=(Range(min=1),), value="abc")
    with pytest.raises(ValidationError, match=r"parameter 'page': must be comparable to 1, got str"):
        validate_parameter(page, validate_properties=False)

    name = ParameterDescriptor("name", 1, constraints=(Length(min=1),), value=5)
    with pytest.raises(ValidationError, match=r"parameter 'name': must have a length, got int"):
        validate_parameter(name, validate_properties=False)
