import json
import socket

import httpx
import pytest

from chatrelay.core.errors import (
    DownstreamTimeoutError,
    ModelNotAvailableError,
    ServiceUnavailableError,
    ServiceUnreachableError,
    UnknownDownstreamError,
)
from chatrelay.services.ollama_client import NO_RESPONSE_PLACEHOLDER

from tests.conftest import MODEL, make_generation_client


def respond(status_code=200, **kwargs):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, **kwargs)
    return handler


def fail_with(exc_factory):
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_factory(request)
    return handler


async def test_generate_sends_non_streaming_request():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"response": "Hi!", "done": True})

    client = make_generation_client(handler)
    assert await client.generate("hello") == "Hi!"

    assert len(seen) == 1
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/api/generate"
    assert json.loads(seen[0].content) == {"model": MODEL, "prompt": "hello", "stream": False}


async def test_missing_response_field_uses_placeholder():
    client = make_generation_client(respond(json={"done": True}))
    assert await client.generate("hello") == NO_RESPONSE_PLACEHOLDER


async def test_empty_reply_passes_through():
    client = make_generation_client(respond(json={"response": ""}))
    assert await client.generate("hello") == ""


async def test_connection_refused_is_service_unavailable():
    client = make_generation_client(fail_with(
        lambda request: httpx.ConnectError("[Errno 111] Connection refused", request=request)
    ))
    with pytest.raises(ServiceUnavailableError) as exc_info:
        await client.generate("hello")
    assert exc_info.value.status_code == 503


async def test_dns_failure_message_is_service_unreachable():
    client = make_generation_client(fail_with(
        lambda request: httpx.ConnectError("[Errno -2] Name or service not known", request=request)
    ))
    with pytest.raises(ServiceUnreachableError) as exc_info:
        await client.generate("hello")
    assert exc_info.value.status_code == 503


async def test_dns_failure_in_cause_chain_is_service_unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        try:
            raise socket.gaierror(-3, "lookup failed")
        except socket.gaierror as e:
            raise httpx.ConnectError("connect failed", request=request) from e

    client = make_generation_client(handler)
    with pytest.raises(ServiceUnreachableError):
        await client.generate("hello")


async def test_runtime_404_is_model_not_available():
    client = make_generation_client(respond(404, json={"error": f"model '{MODEL}' not found"}))
    with pytest.raises(ModelNotAvailableError) as exc_info:
        await client.generate("hello")
    assert exc_info.value.status_code == 404
    assert MODEL in exc_info.value.message


async def test_timeout_is_downstream_timeout():
    client = make_generation_client(
        fail_with(lambda request: httpx.ReadTimeout("timed out", request=request)),
        generate_timeout=30.0,
    )
    with pytest.raises(DownstreamTimeoutError) as exc_info:
        await client.generate("hello")
    assert exc_info.value.status_code == 500
    assert "30 seconds" in exc_info.value.message


async def test_server_error_is_unknown_with_downstream_message():
    client = make_generation_client(respond(500, json={"error": "out of memory"}))
    with pytest.raises(UnknownDownstreamError) as exc_info:
        await client.generate("hello")
    assert exc_info.value.status_code == 500
    assert exc_info.value.message.startswith("Failed to get response from Ollama: ")
    assert "500" in exc_info.value.message


async def test_undecodable_body_is_unknown():
    client = make_generation_client(respond(content=b"<html>oops</html>"))
    with pytest.raises(UnknownDownstreamError):
        await client.generate("hello")


async def test_same_failure_maps_to_same_error_every_time():
    client = make_generation_client(fail_with(
        lambda request: httpx.ConnectError("[Errno 111] Connection refused", request=request)
    ))
    kinds = set()
    for _ in range(3):
        with pytest.raises(ServiceUnavailableError) as exc_info:
            await client.generate("hello")
        kinds.add((type(exc_info.value), exc_info.value.message))
    assert len(kinds) == 1


async def test_check_health_lists_models():
    client = make_generation_client(respond(json={"models": [{"name": MODEL}, {"name": "mistral:7b"}]}))
    status = await client.check_health()
    assert status.reachable
    assert status.model_available
    assert status.models == [MODEL, "mistral:7b"]
    assert status.error is None


async def test_check_health_without_required_model():
    client = make_generation_client(respond(json={"models": [{"name": "mistral:7b"}]}))
    status = await client.check_health()
    assert status.reachable
    assert not status.model_available
    assert status.models == ["mistral:7b"]


async def test_check_health_never_raises_when_down():
    client = make_generation_client(fail_with(
        lambda request: httpx.ConnectError("[Errno 111] Connection refused", request=request)
    ))
    status = await client.check_health()
    assert not status.reachable
    assert not status.model_available
    assert status.models == []
    assert "Connection refused" in status.error


async def test_check_health_uses_short_timeout():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"models": []})

    client = make_generation_client(handler, health_timeout=5.0)
    await client.check_health()
    assert seen[0].url.path == "/api/tags"
    assert seen[0].extensions["timeout"]["read"] == 5.0


@pytest.mark.parametrize("body", [{"models": 5}, {"models": "llama"}, {"models": {"name": MODEL}}])
async def test_check_health_with_malformed_model_list_is_unreachable(body):
    client = make_generation_client(respond(json=body))
    status = await client.check_health()
    assert not status.reachable
    assert not status.model_available
    assert status.models == []
    assert status.error


async def test_check_health_skips_entries_without_string_names():
    client = make_generation_client(respond(json={"models": [{"name": 7}, {"size": 10}, {"name": MODEL}]}))
    status = await client.check_health()
    assert status.reachable
    assert status.model_available
    assert status.models == [MODEL]
    assert status.listed == 3
