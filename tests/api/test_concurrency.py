"""
Concurrent HTTP requests racing for the same capacity.
"""

import asyncio

import httpx
import pytest

from tests.conftest import DRIVERS, booking_payload


async def post_many(app, payloads):
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            return await asyncio.gather(
                *[client.post("/api/v1/bookings", json=payload) for payload in payloads]
            )


@pytest.mark.asyncio
async def test_last_room_goes_to_exactly_one_request(app):
    responses = await post_many(
        app, [booking_payload(userId="user-a"), booking_payload(userId="user-b")]
    )

    codes = sorted(response.status_code for response in responses)
    assert codes == [201, 409]
    loser = next(r for r in responses if r.status_code == 409)
    assert loser.json()["errorKind"] == "Unavailable"


@pytest.mark.asyncio
async def test_driver_pool_never_overbooks(app):
    payloads = [
        booking_payload(
            resourceId=DRIVERS,
            intervalStart="2030-01-10T08:00:00Z",
            intervalEnd="2030-01-10T10:00:00Z",
            partySize=1,
            userId=f"rider-{n}",
        )
        for n in range(6)
    ]
    responses = await post_many(app, payloads)

    created = [r for r in responses if r.status_code == 201]
    assert len(created) == 3
    assert all(r.status_code == 409 for r in responses if r.status_code != 201)
    assert len({r.json()["bookingId"] for r in created}) == 3
