from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

import anyio
import pytest
from pydantic import BaseModel

from middleware_stack import EmptyStackError, Middleware, compose_stack, middleware, validate_stack
from middleware_stack.settings import get_settings


class Request(BaseModel):
    value: int


class Response(BaseModel):
    result: int


def test_call_and_return_nesting():
    log: List[str] = []

    def make_step(label: str) -> Middleware:
        async def step(request, next):
            log.append(f"{label}-start")
            response = await next(request)
            log.append(f"{label}-end")
            return response

        return Middleware(call=step, name=label)

    async def terminal(request, next):
        log.append("3-start-and-terminal")
        return {"done": True}

    executable = compose_stack([make_step("1"), make_step("2"), Middleware(call=terminal, name="3")])
    result = asyncio.run(executable({}))

    assert result == {"done": True}
    assert log == ["1-start", "2-start", "3-start-and-terminal", "2-end", "1-end"]


def test_terminal_step_short_circuits_the_rest():
    triple_called = False

    @middleware(own_input=Request, own_output=Response, name="Double")
    async def double(request, next):
        return {"result": request["value"] * 2}

    @middleware(own_input=Request, own_output=Response, name="Triple")
    async def triple(request, next):
        nonlocal triple_called
        triple_called = True
        return {"result": request["value"] * 3}

    executable = compose_stack([double, triple])

    assert asyncio.run(executable({"value": 5})) == {"result": 10}
    assert triple_called is False
    # Double declares no next contracts, so only the output pair is reported.
    assert [e.direction for e in validate_stack([double, triple])] == ["output"]


def test_steps_transform_input_and_output():
    @middleware(own_input=Request, next_input=Request, next_output=Response, own_output=Response)
    async def add_one(request: Request, next) -> Response:
        response = await next(Request(value=request.value + 1))
        return Response(result=response.result + 100)

    @middleware(own_input=Request, own_output=Response)
    async def square(request: Request, next) -> Response:
        return Response(result=request.value**2)

    executable = compose_stack([add_one, square])

    assert asyncio.run(executable(Request(value=2))) == Response(result=109)
    assert validate_stack([add_one, square]) == []


def test_plain_functions_are_supported():
    def sync_step(request, next):
        return {"seen": request}

    executable = compose_stack([Middleware(call=sync_step)])
    assert asyncio.run(executable(7)) == {"seen": 7}


def test_last_step_calling_next_gets_placeholder():
    async def greedy(request, next):
        return await next(request)

    executable = compose_stack([Middleware(call=greedy)])
    assert asyncio.run(executable({"x": 1})) == {}


def test_multiple_next_calls_are_not_prevented():
    calls: List[int] = []

    async def twice(request, next):
        await next(1)
        return await next(2)

    async def echo(request, next):
        calls.append(request)
        return request

    executable = compose_stack([Middleware(call=twice), Middleware(call=echo)])
    assert asyncio.run(executable(0)) == 2
    assert calls == [1, 2]


def test_errors_propagate_out_of_the_pipeline():
    async def passthrough(request, next):
        return await next(request)

    async def failing(request, next):
        raise ValueError("backend down")

    executable = compose_stack([Middleware(call=passthrough), Middleware(call=failing)])

    with pytest.raises(ValueError, match="backend down"):
        asyncio.run(executable({}))


def test_a_step_can_recover_from_downstream_errors():
    async def guard(request, next):
        try:
            return await next(request)
        except ValueError as e:
            return {"error": str(e)}

    async def failing(request, next):
        raise ValueError("backend down")

    executable = compose_stack([Middleware(call=guard), Middleware(call=failing)])
    assert asyncio.run(executable({})) == {"error": "backend down"}


def test_concurrent_invocations_are_independent():
    async def tag(request, next):
        await anyio.sleep(0.01)
        response = await next({"value": request["value"], "path": ["tag"]})
        return response

    async def finish(request, next):
        await anyio.sleep(0)
        request["path"].append("finish")
        return request

    executable = compose_stack([Middleware(call=tag), Middleware(call=finish)])
    results: Dict[int, Any] = {}

    async def run_all() -> None:
        async def one(value: int) -> None:
            results[value] = await executable({"value": value})

        async with anyio.create_task_group() as tg:
            for value in range(5):
                tg.start_soon(one, value)

    anyio.run(run_all)

    assert results == {v: {"value": v, "path": ["tag", "finish"]} for v in range(5)}


def test_executable_can_be_reused():
    async def double(request, next):
        return request * 2

    executable = compose_stack([Middleware(call=double)])
    assert asyncio.run(executable(2)) == 4
    assert asyncio.run(executable(5)) == 10


def test_empty_stack_is_rejected():
    with pytest.raises(EmptyStackError):
        compose_stack([])


def test_validate_on_compose_logs_mismatches(monkeypatch, caplog):
    monkeypatch.setenv("MIDDLEWARE_STACK_VALIDATE_ON_COMPOSE", "1")
    get_settings.cache_clear()

    @middleware(next_output=Request, name="outer")
    async def outer(request, next):
        return await next(request)

    @middleware(own_output=Response, name="inner")
    async def inner(request, next):
        return {"result": 1}

    with caplog.at_level(logging.WARNING, logger="middleware_stack.utils"):
        executable = compose_stack([outer, inner])

    assert "self:outer.next_output and next:inner.own_output output type" in caplog.text
    # Advisory only: the stack still runs.
    assert asyncio.run(executable({})) == {"result": 1}


def test_validation_is_silent_by_default(caplog):
    @middleware(next_output=Request, name="outer")
    async def outer(request, next):
        return await next(request)

    with caplog.at_level(logging.WARNING, logger="middleware_stack.utils"):
        compose_stack([outer, Middleware(call=outer.call, own_output=Response)])

    assert caplog.text == ""
