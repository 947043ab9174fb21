import random
import uuid
from datetime import datetime, timedelta, timezone

from locust import HttpUser, between, task

RESOURCES = ("city-driver-pool", "fishermans-wharf-tables")


class BookingUser(HttpUser):
    # Wait between 1 and 3 seconds between tasks
    wait_time = between(1, 3)

    def on_start(self):
        """
        Called when a Locust user starts.
        Every simulated user books as its own account.
        """
        self.user_id = f"load-{uuid.uuid4().hex[:8]}"

    def _payload(self):
        # A handful of slots so requests collide on capacity
        start = datetime(2030, 6, 1, 18, tzinfo=timezone.utc) + timedelta(
            hours=random.randint(0, 5)
        )
        return {
            "resourceId": random.choice(RESOURCES),
            "intervalStart": start.isoformat(),
            "intervalEnd": (start + timedelta(hours=1)).isoformat(),
            "partySize": 2,
            "userId": self.user_id,
            "requesterContact": {"name": "Load Test", "email": "load@example.com"},
        }

    @task(3)
    def create_booking(self):
        """
        Create a draft booking. 409 means the slot is full, which is expected
        under load, so it is not reported as a failure.
        """
        headers = {
            "Idempotency-Key": str(uuid.uuid4()),
            "Content-Type": "application/json",
        }
        with self.client.post(
            "/api/v1/bookings",
            json=self._payload(),
            headers=headers,
            name="/api/v1/bookings",  # Group all requests under this name in the stats
            catch_response=True,
        ) as response:
            if response.status_code in (201, 409):
                response.success()

    @task(1)
    def check_availability(self):
        payload = self._payload()
        self.client.get(
            f"/api/v1/resources/{payload['resourceId']}/availability",
            params={"start": payload["intervalStart"], "end": payload["intervalEnd"]},
            name="/api/v1/resources/[id]/availability",
        )
