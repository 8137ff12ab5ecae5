"""Integration tests for the EmailJS client."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from codecrafter.config import EmailConfig
from codecrafter.errors import NotificationFailedError
from codecrafter.integrations.emailjs import EmailJSClient, EmailMessage

API_URL = "https://api.emailjs.test/api/v1.0/email/send"


def _config(**overrides) -> EmailConfig:
    values = {
        "api_url": API_URL,
        "service_id": "service_abc",
        "template_id": "template_generic",
        "user_id": "public_key",
        "private_key": "secret_token",
    }
    values.update(overrides)
    return EmailConfig(**values)


def _message() -> EmailMessage:
    return EmailMessage(
        to_address="dana@devs.test",
        subject="Welcome",
        body_html="<p>Hello</p>",
        from_name="CodeCrafter",
    )


def test_template_params_shape() -> None:
    params = _message().template_params()

    assert params == {
        "to_email": "dana@devs.test",
        "from_name": "CodeCrafter",
        "reply_to_email": "dana@devs.test",
        "subject_line": "Welcome",
        "html_body_content": "<p>Hello</p>",
    }


@respx.mock
@pytest.mark.asyncio
async def test_send_success_posts_credentials() -> None:
    route = respx.post(API_URL).mock(return_value=httpx.Response(200, text="OK"))
    client = EmailJSClient(_config())

    result = await client.send(_message())
    await client.close()

    assert result is True
    body = json.loads(route.calls.last.request.content)
    assert body["service_id"] == "service_abc"
    assert body["template_id"] == "template_generic"
    assert body["user_id"] == "public_key"
    assert body["accessToken"] == "secret_token"
    assert body["template_params"]["to_email"] == "dana@devs.test"


@respx.mock
@pytest.mark.asyncio
async def test_send_failure_status() -> None:
    respx.post(API_URL).mock(return_value=httpx.Response(400, text="The template ID is invalid"))
    client = EmailJSClient(_config())

    result = await client.send(_message())
    await client.close()

    assert result is False


@respx.mock
@pytest.mark.asyncio
async def test_send_transport_error() -> None:
    respx.post(API_URL).mock(side_effect=httpx.ConnectError("Connection failed"))
    client = EmailJSClient(_config())

    result = await client.send(_message())
    await client.close()

    assert result is False


@respx.mock
@pytest.mark.asyncio
async def test_unconfigured_client_sends_nothing() -> None:
    route = respx.post(API_URL).mock(return_value=httpx.Response(200))
    client = EmailJSClient(_config(private_key=None))

    assert await client.send(_message()) is False
    assert route.call_count == 0


@respx.mock
@pytest.mark.asyncio
async def test_disabled_client_sends_nothing() -> None:
    route = respx.post(API_URL).mock(return_value=httpx.Response(200))
    client = EmailJSClient(_config(enabled=False))

    assert await client.send(_message()) is False
    assert route.call_count == 0


@respx.mock
@pytest.mark.asyncio
async def test_notify_raises_on_failure() -> None:
    respx.post(API_URL).mock(return_value=httpx.Response(500))
    client = EmailJSClient(_config())

    with pytest.raises(NotificationFailedError) as exc_info:
        await client.notify("dana@devs.test", "Welcome", "<p>Hello</p>")
    await client.close()

    assert exc_info.value.to_address == "dana@devs.test"


@respx.mock
@pytest.mark.asyncio
async def test_notify_success() -> None:
    route = respx.post(API_URL).mock(return_value=httpx.Response(200))
    client = EmailJSClient(_config(from_name="CodeCrafter Team"))

    await client.notify("dana@devs.test", "Welcome", "<p>Hello</p>")
    await client.close()

    body = json.loads(route.calls.last.request.content)
    assert body["template_params"]["from_name"] == "CodeCrafter Team"
    assert body["template_params"]["subject_line"] == "Welcome"
    assert body["template_params"]["reply_to_email"] == "dana@devs.test"


@respx.mock
@pytest.mark.asyncio
async def test_notify_with_reply_to() -> None:
    route = respx.post(API_URL).mock(return_value=httpx.Response(200))
    client = EmailJSClient(_config())

    await client.notify(
        "ops@codecrafter.test", "New request", "<p>...</p>", reply_to="grace@clients.test"
    )
    await client.close()

    params = json.loads(route.calls.last.request.content)["template_params"]
    assert params["to_email"] == "ops@codecrafter.test"
    assert params["reply_to_email"] == "grace@clients.test"
