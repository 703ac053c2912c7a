from __future__ import annotations

import asyncio
from typing import List

import anyio
import pytest
from pydantic import BaseModel

from middleware_stack import (
    GenMiddleware,
    Middleware,
    MissingMiddlewareError,
    compose_gen_stack,
    compose_stack,
    get_from_registry,
    get_gen_from_registry,
    import_provider,
    middleware,
    validate_stack,
)
from middleware_stack.builtins import default_logging_middleware


class Request(BaseModel):
    value: int


class Response(BaseModel):
    result: int


@middleware(own_input=Request, own_output=Response, name="double")
async def double(request, next):
    return {"result": request["value"] * 2}


@middleware(own_input=Request, own_output=Response, name="triple")
async def triple(request, next):
    return {"result": request["value"] * 3}


def _provider(step, calls: List[str]):
    async def provide():
        calls.append(step.name)
        return step

    return provide


def test_resolves_in_request_order():
    calls: List[str] = []
    registry = {"double": _provider(double, calls), "triple": _provider(triple, calls)}

    stack = asyncio.run(get_from_registry(["triple", "double"], registry))

    assert stack == [triple, double]
    assert calls == ["triple", "double"]


def test_missing_names_fail_atomically():
    calls: List[str] = []
    registry = {"present": _provider(double, calls)}

    with pytest.raises(MissingMiddlewareError) as info:
        asyncio.run(get_from_registry(["present", "missing1", "missing2"], registry))

    assert str(info.value) == "Missing middlewares in registry: missing1, missing2"
    assert info.value.missing == ["missing1", "missing2"]
    assert isinstance(info.value, LookupError)
    assert calls == []


def test_empty_registry_lists_every_name():
    with pytest.raises(MissingMiddlewareError, match="Missing middlewares in registry: a, b"):
        asyncio.run(get_from_registry(["a", "b"], {}))


def test_providers_run_concurrently():
    events = {}

    async def first():
        # Would never finish if providers were awaited one after another.
        await events["second_started"].wait()
        return double

    async def second():
        events["second_started"].set()
        return triple

    async def resolve():
        events["second_started"] = anyio.Event()
        with anyio.fail_after(2):
            return await get_from_registry(["first", "second"], {"first": first, "second": second})

    assert anyio.run(resolve) == [double, triple]


def test_provider_errors_propagate():
    async def broken():
        raise ImportError("no such module")

    with pytest.raises(ImportError, match="no such module"):
        asyncio.run(get_from_registry(["broken"], {"broken": broken}))


def test_registry_and_compose_together():
    calls: List[str] = []
    registry = {"double": _provider(double, calls)}

    async def run():
        stack = await get_from_registry(["double"], registry)
        return await compose_stack(stack)({"value": 21})

    assert asyncio.run(run()) == {"result": 42}


def test_gen_registry_and_compose_together():
    async def add_ten(details, next, resolve):
        next({"value": details["value"] + 10}, resolve)

    async def echo(details, next, resolve):
        resolve(details)

    registry = {
        "add_ten": _provider(GenMiddleware(call=add_ten, name="add_ten"), []),
        "echo": _provider(GenMiddleware(call=echo, name="echo"), []),
    }
    events: List[dict] = []

    async def run():
        stack = await get_gen_from_registry(["add_ten", "echo"], registry)
        await compose_gen_stack(stack)({"value": 1}, events.append)

    asyncio.run(run())
    assert events == [{"value": 11}]


def test_import_provider_loads_lazily():
    registry = {"log": import_provider("middleware_stack.builtins:default_logging_middleware")}
    stack = asyncio.run(get_from_registry(["log"], registry))
    assert stack == [default_logging_middleware]


def test_import_provider_from_user_module(tmp_path, monkeypatch):
    (tmp_path / "my_steps.py").write_text(
        "from middleware_stack import Middleware\n"
        "async def _echo(request, next):\n"
        "    return request\n"
        "echo = Middleware(call=_echo, name='echo')\n",
        encoding="utf-8",
    )
    monkeypatch.syspath_prepend(str(tmp_path))

    (step,) = asyncio.run(get_from_registry(["echo"], {"echo": import_provider("my_steps:echo")}))

    assert isinstance(step, Middleware)
    assert step.name == "echo"
    assert validate_stack([step]) == []


def test_import_provider_rejects_non_middleware():
    provider = import_provider("middleware_stack.builtins:logging_middleware")
    with pytest.raises(TypeError, match="not a Middleware"):
        asyncio.run(provider())


def test_import_provider_rejects_bad_paths():
    with pytest.raises(ValueError, match="package.module:attribute"):
        asyncio.run(import_provider("middleware_stack.builtins")())
