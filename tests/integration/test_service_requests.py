"""Integration tests for quick service requests."""

from __future__ import annotations

import pytest

from codecrafter.errors import InvalidServiceRequestError
from codecrafter.notifications.dispatcher import NotificationDispatcher
from codecrafter.notifications.templates import EmailRenderer
from codecrafter.workflow.service_requests import BudgetRange, ServiceRequestDesk, UrgencyLevel

OPS_INBOX = "ops@codecrafter.test"
DESCRIPTION = "We need a booking widget embedded in our existing clinic website."


@pytest.fixture
def desk(dispatcher: NotificationDispatcher, renderer: EmailRenderer) -> ServiceRequestDesk:
    return ServiceRequestDesk(dispatcher, renderer, OPS_INBOX)


@pytest.mark.asyncio
async def test_request_forwarded_and_acknowledged(
    desk: ServiceRequestDesk, dispatcher: NotificationDispatcher, notifier
) -> None:
    request = await desk.submit(
        "Grace Hopper", "grace@clients.test", DESCRIPTION, budget="$1k-$2.5k", urgency="High"
    )
    await dispatcher.drain()

    assert request.budget is BudgetRange.from_1k
    assert request.urgency is UrgencyLevel.high

    (forwarded,) = notifier.to(OPS_INBOX)
    assert forwarded[1] == "New Quick Service Request: Grace Hopper"
    assert "grace@clients.test" in forwarded[2]
    assert "$1k-$2.5k" in forwarded[2]
    assert notifier.reply_to[OPS_INBOX] == "grace@clients.test"

    (confirmation,) = notifier.to("grace@clients.test")
    assert "Received Your Request" in confirmation[1]
    assert "Hi Grace Hopper" in confirmation[2]


@pytest.mark.asyncio
async def test_unspecified_budget_and_urgency(
    desk: ServiceRequestDesk, dispatcher: NotificationDispatcher, notifier
) -> None:
    request = await desk.submit("Grace Hopper", "grace@clients.test", DESCRIPTION, "", "none")
    await dispatcher.drain()

    assert request.budget is None
    assert request.urgency is None
    assert "Budget Range" not in notifier.to(OPS_INBOX)[0][2]


@pytest.mark.asyncio
async def test_requester_content_is_escaped(
    desk: ServiceRequestDesk, dispatcher: NotificationDispatcher, notifier
) -> None:
    await desk.submit("Grace <b>Hopper</b>", "grace@clients.test", DESCRIPTION + " <script>")
    await dispatcher.drain()

    body = notifier.to(OPS_INBOX)[0][2]
    assert "<script>" not in body
    assert "&lt;b&gt;Hopper&lt;/b&gt;" in body


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("name", "email", "description", "budget"),
    [
        ("G", "grace@clients.test", DESCRIPTION, None),
        ("Grace Hopper", "not-an-email", DESCRIPTION, None),
        ("Grace Hopper", "grace@clients.test", "Too short", None),
        ("Grace Hopper", "grace@clients.test", DESCRIPTION, "a million dollars"),
    ],
)
async def test_invalid_request_rejected_without_email(
    desk: ServiceRequestDesk,
    dispatcher: NotificationDispatcher,
    notifier,
    name: str,
    email: str,
    description: str,
    budget: str | None,
) -> None:
    with pytest.raises(InvalidServiceRequestError):
        await desk.submit(name, email, description, budget=budget)
    await dispatcher.drain()

    assert notifier.sent == []


@pytest.mark.asyncio
async def test_missing_admin_inbox_still_acknowledges(
    dispatcher: NotificationDispatcher, renderer: EmailRenderer, notifier
) -> None:
    desk = ServiceRequestDesk(dispatcher, renderer, admin_email=None)

    await desk.submit("Grace Hopper", "grace@clients.test", DESCRIPTION)
    await dispatcher.drain()

    assert [msg[0] for msg in notifier.sent] == ["grace@clients.test"]


@pytest.mark.asyncio
async def test_delivery_failure_does_not_fail_request(
    desk: ServiceRequestDesk, dispatcher: NotificationDispatcher, notifier
) -> None:
    notifier.fail_for.add(OPS_INBOX)

    request = await desk.submit("Grace Hopper", "grace@clients.test", DESCRIPTION)
    await dispatcher.drain()

    assert request.name == "Grace Hopper"
    assert [msg[0] for msg in notifier.sent] == ["grace@clients.test"]
