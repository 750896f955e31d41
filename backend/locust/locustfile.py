"""
Locust Load Test Suite

Hotels, rooms and users are owned by other services, so the run needs ids
of records that already exist:

  export LOAD_HOTEL_ID=... LOAD_ROOM_TYPE_ID=... LOAD_USER_ID=...
  export LOAD_ROOM_IDS=id1,id2,id3

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test double booking
  locust -f locustfile.py --tags throughput   # Test read paths
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random
from datetime import date, timedelta

from locust import HttpUser, between, events, tag, task

HOTEL_ID = os.environ.get("LOAD_HOTEL_ID", "")
ROOM_TYPE_ID = os.environ.get("LOAD_ROOM_TYPE_ID", "")
USER_ID = os.environ.get("LOAD_USER_ID", "")
ROOM_IDS = [r for r in os.environ.get("LOAD_ROOM_IDS", "").split(",") if r]

# Shared state
HOLD_IDS = []


def random_stay(horizon_days: int = 60, max_nights: int = 5):
    start = date.today() + timedelta(days=random.randint(1, horizon_days))
    end = start + timedelta(days=random.randint(1, max_nights))
    return start.isoformat(), end.isoformat()


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"SETUP: hotel={HOTEL_ID or '-'} rooms={len(ROOM_IDS)} user={USER_ID or '-'}")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - every user fights for one room, one night range

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify no live reservations overlap:
      SELECT a.id, b.id FROM reservations a JOIN reservations b
        ON a.room_id = b.room_id AND a.id < b.id
       AND a.start_date < b.end_date AND a.end_date > b.start_date
       AND a.status IN ('PENDING','CONFIRMED','CHECKED_IN')
       AND b.status IN ('PENDING','CONFIRMED','CHECKED_IN');
    Should return 0 rows
    """
    wait_time = between(0, 0.1)

    @tag("concurrency")
    @task
    def reserve_contested_room(self):
        if not ROOM_IDS:
            return
        start = date.today() + timedelta(days=30)
        with self.client.post(
            "/api/v1/reservations/",
            json={
                "hotel_id": HOTEL_ID,
                "user_id": USER_ID,
                "room_id": ROOM_IDS[0],
                "room_type_id": ROOM_TYPE_ID,
                "start_date": start.isoformat(),
                "end_date": (start + timedelta(days=2)).isoformat(),
                "guest_count": 1,
            },
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409 expected: room already taken
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("concurrency")
    @task
    def hold_contested_room(self):
        if not ROOM_IDS:
            return
        start = date.today() + timedelta(days=45)
        with self.client.post(
            "/api/v1/holds/",
            json={
                "hotel_id": HOTEL_ID,
                "room_id": ROOM_IDS[0],
                "user_id": USER_ID,
                "start_date": start.isoformat(),
                "end_date": (start + timedelta(days=1)).isoformat(),
            },
            name="/api/v1/holds/ [contested]",
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - read paths and gate-free lookups

    Run: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def room_reservations(self):
        if ROOM_IDS:
            self.client.get(
                f"/api/v1/reservations/room/{random.choice(ROOM_IDS)}",
                name="/api/v1/reservations/room/{id}",
            )

    @tag("throughput", "read")
    @task(5)
    def search_active_holds(self):
        self.client.post("/api/v1/holds/search", json={"hotel_id": HOTEL_ID or None, "active_only": True})

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_room(self):
        start, end = random_stay()
        with self.client.post(
            "/api/v1/holds/",
            json={
                "hotel_id": HOTEL_ID,
                "room_id": "00000000-0000-0000-0000-000000000000",
                "user_id": USER_ID,
                "start_date": start,
                "end_date": end,
            },
            catch_response=True,
        ) as resp:
            self._expect(resp, [404, 422])

    @tag("edge")
    @task
    def reversed_dates(self):
        if not ROOM_IDS:
            return
        start, end = random_stay()
        with self.client.post(
            "/api/v1/holds/",
            json={
                "hotel_id": HOTEL_ID,
                "room_id": random.choice(ROOM_IDS),
                "user_id": USER_ID,
                "start_date": end,
                "end_date": start,
            },
            catch_response=True,
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def zero_guests(self):
        start, end = random_stay()
        with self.client.post(
            "/api/v1/reservations/",
            json={
                "hotel_id": HOTEL_ID,
                "user_id": USER_ID,
                "room_id": ROOM_IDS[0] if ROOM_IDS else HOTEL_ID,
                "room_type_id": ROOM_TYPE_ID,
                "start_date": start,
                "end_date": end,
                "guest_count": 0,
            },
            catch_response=True,
        ) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            "/api/v1/reservations/",
            data="not json at all",
            catch_response=True,
        ) as resp:
            self._expect(resp, [400, 422])


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Guests browse, hold a room, then either promote the hold or let it go.
    """
    wait_time = between(1, 3)

    @task(20)
    def browse_room(self):
        if ROOM_IDS:
            self.client.get(
                f"/api/v1/holds/room/{random.choice(ROOM_IDS)}",
                name="/api/v1/holds/room/{id}",
            )

    @task(10)
    def place_hold(self):
        if not ROOM_IDS:
            return
        start, end = random_stay()
        resp = self.client.post(
            "/api/v1/holds/",
            json={
                "hotel_id": HOTEL_ID,
                "room_id": random.choice(ROOM_IDS),
                "user_id": USER_ID,
                "start_date": start,
                "end_date": end,
            },
        )
        if resp.status_code == 201:
            HOLD_IDS.append(resp.json()["id"])

    @task(5)
    def promote_hold(self):
        if not HOLD_IDS:
            return
        hold_id = HOLD_IDS.pop(random.randrange(len(HOLD_IDS)))
        self.client.post(
            f"/api/v1/holds/{hold_id}/promote",
            json={"room_type_id": ROOM_TYPE_ID, "guest_count": random.randint(1, 2)},
            name="/api/v1/holds/{id}/promote",
        )

    @task(2)
    def abandon_hold(self):
        if not HOLD_IDS:
            return
        hold_id = HOLD_IDS.pop(random.randrange(len(HOLD_IDS)))
        self.client.post(f"/api/v1/holds/{hold_id}/cancel", name="/api/v1/holds/{id}/cancel")
