r"""Unit tests for the built-in return hooks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import pytest
from coola.equality import objects_are_equal

from apiaction.config import ApiConfig
from apiaction.context import ApiActionContext
from apiaction.descriptors import ActionDescriptorBuilder
from apiaction.exceptions import MaterializationError
from apiaction.hooks import JsonReturn, ResponseReturn, ReturnHook, TextReturn
from apiaction.hooks.returns import coerce
from apiaction.request import ApiRequest


@dataclass
class Item:
    id: int
    name: str


def _context(
    config: ApiConfig, hook: ReturnHook, response: httpx.Response, return_type: Any = None
) -> ApiActionContext:
    descriptor = ActionDescriptorBuilder("get_item").returns(hook, return_type).build().bind()
    context = ApiActionContext(config, descriptor)
    context.request = ApiRequest(url="/items/1")
    context.response = response
    return context


##########################
#     Tests for coerce   #
##########################


@pytest.mark.parametrize(
    ("value", "target", "expected"),
    [
        ("42", int, 42),
        (" 42 ", int, 42),
        (42, str, "42"),
        ("1.5", float, 1.5),
        (3, float, 3.0),
        (42.0, int, 42),
        ("true", bool, True),
        ("0", bool, False),
        ([1, 2], list[int], [1, 2]),
        (None, int, None),
        ("x", None, "x"),
        ("x", Any, "x"),
        ({"id": 1, "name": "a"}, Item, Item(id=1, name="a")),
    ],
)
def test_coerce(value: Any, target: Any, expected: Any) -> None:
    assert coerce(value, target) == expected


def test_coerce_invalid_bool() -> None:
    with pytest.raises(ValueError, match=r"cannot convert 'maybe' to bool"):
        coerce("maybe", bool)


def test_coerce_unsupported_target() -> None:
    with pytest.raises(TypeError, match=r"cannot convert str to dict"):
        coerce("x", dict)


def test_coerce_unparsable_int() -> None:
    with pytest.raises(ValueError):
        coerce("abc", int)


def test_coerce_fractional_float_to_int() -> None:
    with pytest.raises(ValueError, match=r"cannot convert 42.7 to int without losing precision"):
        coerce(42.7, int)


##############################
#     Tests for JsonReturn   #
##############################


@pytest.mark.asyncio
async def test_json_return_sets_accept(config: ApiConfig) -> None:
    context = _context(config, JsonReturn(), httpx.Response(200))
    await JsonReturn().before_request(context)
    assert context.request.headers["accept"] == "application/json"


@pytest.mark.asyncio
async def test_json_return_keeps_existing_accept(config: ApiConfig) -> None:
    context = _context(config, JsonReturn(), httpx.Response(200))
    context.request.add_header("Accept", "application/vnd.api+json")
    await JsonReturn().before_request(context)
    assert context.request.headers.get_list("accept") == ["application/vnd.api+json"]


@pytest.mark.asyncio
async def test_json_return_materializes_dataclass(config: ApiConfig) -> None:
    hook = JsonReturn()
    context = _context(config, hook, httpx.Response(200, json={"id": 1, "name": "a"}), Item)
    assert await hook.materialize(context) == Item(id=1, name="a")


@pytest.mark.asyncio
async def test_json_return_string_to_int(config: ApiConfig) -> None:
    hook = JsonReturn()
    context = _context(config, hook, httpx.Response(200, text='"42"'), int)
    assert await hook.materialize(context) == 42


@pytest.mark.asyncio
async def test_json_return_invalid_json(config: ApiConfig) -> None:
    hook = JsonReturn()
    response = httpx.Response(200, text="not json")
    context = _context(config, hook, response)
    with pytest.raises(MaterializationError, match=r"is not valid JSON") as exc_info:
        await hook.materialize(context)
    assert exc_info.value.response is response


@pytest.mark.asyncio
async def test_json_return_conversion_error(config: ApiConfig) -> None:
    hook = JsonReturn()
    context = _context(config, hook, httpx.Response(200, json=[1]), int)
    with pytest.raises(MaterializationError, match=r"cannot convert the response of action 'get_item'"):
        await hook.materialize(context)


@pytest.mark.asyncio
async def test_json_return_fractional_number_to_int(config: ApiConfig) -> None:
    hook = JsonReturn()
    context = _context(config, hook, httpx.Response(200, json=42.7), int)
    with pytest.raises(MaterializationError, match=r"without losing precision") as exc_info:
        await hook.materialize(context)
    assert isinstance(exc_info.value.cause, ValueError)


@pytest.mark.asyncio
async def test_json_return_ensure_success(config: ApiConfig) -> None:
    hook = JsonReturn()
    context = _context(config, hook, httpx.Response(404, json={"error": "missing"}))
    with pytest.raises(MaterializationError, match=r"GET request to /items/1 failed with status 404") as exc_info:
        await hook.materialize(context)
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_json_return_without_ensure_success(config: ApiConfig) -> None:
    hook = JsonReturn(ensure_success=False)
    context = _context(config, hook, httpx.Response(404, json={"error": "missing"}))
    assert objects_are_equal(await hook.materialize(context), {"error": "missing"})


##############################
#     Tests for TextReturn   #
##############################


@pytest.mark.asyncio
async def test_text_return(config: ApiConfig) -> None:
    hook = TextReturn()
    context = _context(config, hook, httpx.Response(200, text="hello"))
    assert await hook.materialize(context) == "hello"


@pytest.mark.asyncio
async def test_text_return_ensure_success(config: ApiConfig) -> None:
    hook = TextReturn()
    context = _context(config, hook, httpx.Response(500, text="oops"))
    with pytest.raises(MaterializationError, match=r"failed with status 500"):
        await hook.materialize(context)


##################################
#     Tests for ResponseReturn   #
##################################


@pytest.mark.asyncio
async def test_response_return(config: ApiConfig) -> None:
    hook = ResponseReturn()
    response = httpx.Response(503)
    context = _context(config, hook, response)
    assert await hook.materialize(context) is response
    assert repr(hook) == "ResponseReturn(ensure_success=False)"
