"""
Locust Load Test Suite

Tokens are minted locally with the API's SECRET_KEY (export it before running).

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test double booking
  locust -f locustfile.py --tags throughput   # Test cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random
import uuid
from datetime import datetime, timezone, timedelta

from jose import jwt
from locust import HttpUser, task, between, tag, events

SECRET_KEY = os.getenv("SECRET_KEY", "super-secret-key-change-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")

# Shared state
SHOWTIME_IDS = []
CONCURRENCY_SHOWTIME_ID = None
CONCURRENCY_SEATS = [("A", n) for n in range(1, 6)] + [("B", n) for n in range(1, 6)]


def make_headers(user_id: str = None) -> dict:
    claims = {
        "sub": user_id or f"load-{uuid.uuid4()}",
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    return {"Authorization": f"Bearer {jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)}"}


def seat_payload(seats) -> list:
    return [{"row": row, "number": number} for row, number in seats]


def create_showtime(client, headers, rows: int, seats_per_row: int, name: str):
    resp = client.post("/api/v1/theatres/",
        json={"name": name, "location": "Load Test", "rows": rows, "seats_per_row": seats_per_row},
        headers=headers,
    )
    if resp.status_code != 201:
        return None

    future = (datetime.now(timezone.utc) + timedelta(days=random.randint(1, 90))).isoformat()
    resp = client.post("/api/v1/showtimes/",
        json={
            "movie_id": f"movie-{random.randint(1, 20)}",
            "theatre_id": resp.json()["id"],
            "show_date": future,
            "price": 12.0,
        },
        headers=headers,
    )
    if resp.status_code == 201:
        return resp.json()["id"]
    return None


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Setup: Create showtime with limited seats for concurrency test."""
    print("\n" + "="*60)
    print("SETUP: Creating concurrency test showtime...")
    print("="*60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users → 10 seats (2 rows x 5)

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify no seat is sold twice:
      SELECT row, number, COUNT(*) FROM seat_claims
       WHERE showtime_id = X GROUP BY row, number HAVING COUNT(*) > 1;
    Should return nothing, and available_count + booked seats = 10.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = make_headers()

        if not CONCURRENCY_SHOWTIME_ID:
            showtime_id = create_showtime(self.client, self.headers, 2, 5, "Concurrency Test Hall")
            if showtime_id:
                globals()["CONCURRENCY_SHOWTIME_ID"] = showtime_id
                print(f"\n✓ Created showtime {showtime_id} with 10 seats\n")

    @tag("concurrency")
    @task
    def book_contested_seats(self):
        """All users fight for the same 10 seats, 1-2 at a time."""
        if not CONCURRENCY_SHOWTIME_ID:
            return

        seats = random.sample(CONCURRENCY_SEATS, random.randint(1, 2))
        with self.client.post("/api/v1/bookings/",
            json={
                "showtime_id": CONCURRENCY_SHOWTIME_ID,
                "seats": seat_payload(seats),
                "total_amount": 12.0 * len(seats),
            },
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: seat taken or sold out
            elif resp.status_code == 503:
                resp.success()  # Expected under load: showtime busy, retryable
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: Stop Redis, run again

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_showtimes_cached(self):
        """Hammer the cached endpoint."""
        movie = random.randint(1, 20)
        resp = self.client.get(f"/api/v1/showtimes/?movie_id=movie-{movie}",
            name="/api/v1/showtimes/ [cached]")
        if resp.status_code == 200:
            for showtime in resp.json().get("showtimes", []):
                if showtime["id"] not in SHOWTIME_IDS:
                    SHOWTIME_IDS.append(showtime["id"])

    @tag("throughput", "read")
    @task(3)
    def get_seat_map(self):
        """Read seat maps (never cached)."""
        if SHOWTIME_IDS:
            showtime_id = random.choice(SHOWTIME_IDS)
            self.client.get(f"/api/v1/showtimes/{showtime_id}/seats",
                name="/api/v1/showtimes/{id}/seats")

    @tag("throughput")
    @task(1)
    def health_check(self):
        """Monitor system health."""
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = make_headers()

    def _expect(self, payload, expected, headers=None, data=None):
        with self.client.post("/api/v1/bookings/",
            json=payload,
            data=data,
            headers=self.headers if headers is None else headers,
            catch_response=True
        ) as resp:
            if resp.status_code in expected:
                resp.success()
            else:
                resp.failure(f"Expected {expected}, got {resp.status_code}")

    @tag("edge")
    @task
    def invalid_showtime_id(self):
        """Book non-existent showtime."""
        self._expect(
            {"showtime_id": "does-not-exist", "seats": seat_payload([("A", 1)]), "total_amount": 10},
            [404, 400],
        )

    @tag("edge")
    @task
    def no_seats(self):
        """Try to book an empty seat list."""
        self._expect({"showtime_id": CONCURRENCY_SHOWTIME_ID or "x", "seats": [], "total_amount": 10}, [400, 422])

    @tag("edge")
    @task
    def duplicate_seats(self):
        """Same seat twice in one request."""
        self._expect(
            {
                "showtime_id": CONCURRENCY_SHOWTIME_ID or "x",
                "seats": seat_payload([("A", 1), ("A", 1)]),
                "total_amount": 20,
            },
            [400, 404],
        )

    @tag("edge")
    @task
    def seat_outside_theatre(self):
        """Seat that the theatre does not have."""
        self._expect(
            {
                "showtime_id": CONCURRENCY_SHOWTIME_ID or "x",
                "seats": seat_payload([("Z", 99)]),
                "total_amount": 10,
            },
            [400, 404],
        )

    @tag("edge")
    @task
    def malformed_json(self):
        """Send garbage data."""
        self._expect(None, [400, 422], data="not json at all")

    @tag("edge")
    @task
    def missing_auth(self):
        """Try booking without auth."""
        self._expect(
            {"showtime_id": "x", "seats": seat_payload([("A", 1)]), "total_amount": 10},
            [401],
            headers={},
        )


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates real traffic:
      - Mostly browsing (80%)
      - Some bookings and cancellations (15%)
      - Rare creates (5%)
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = make_headers()
        self.booking_ids = []

    @task(50)
    def browse_showtimes(self):
        """Most common: browsing."""
        resp = self.client.get("/api/v1/showtimes/")
        if resp.status_code == 200:
            for showtime in resp.json().get("showtimes", []):
                if showtime["id"] not in SHOWTIME_IDS:
                    SHOWTIME_IDS.append(showtime["id"])

    @task(20)
    def view_seat_map(self):
        """View the seat grid."""
        if SHOWTIME_IDS:
            self.client.get(f"/api/v1/showtimes/{random.choice(SHOWTIME_IDS)}/seats",
                name="/api/v1/showtimes/{id}/seats")

    @task(10)
    def book_seats(self):
        """Pick free seats from the map and book them."""
        if not SHOWTIME_IDS:
            return
        showtime_id = random.choice(SHOWTIME_IDS)
        resp = self.client.get(f"/api/v1/showtimes/{showtime_id}/seats",
            name="/api/v1/showtimes/{id}/seats")
        if resp.status_code != 200:
            return

        free = [(s["row"], s["number"]) for s in resp.json()["seats"] if s["status"] == "AVAILABLE"]
        if not free:
            return
        seats = random.sample(free, min(len(free), random.randint(1, 3)))
        resp = self.client.post("/api/v1/bookings/",
            json={"showtime_id": showtime_id, "seats": seat_payload(seats), "total_amount": 12.0 * len(seats)},
            headers=self.headers)
        if resp.status_code == 201:
            self.booking_ids.append(resp.json()["id"])

    @task(3)
    def cancel_booking(self):
        """Occasionally change your mind."""
        if self.booking_ids:
            booking_id = self.booking_ids.pop()
            self.client.delete(f"/api/v1/bookings/{booking_id}",
                headers=self.headers, name="/api/v1/bookings/{id}")

    @task(3)
    def schedule_showtime(self):
        """Rare: schedule a new showtime."""
        showtime_id = create_showtime(
            self.client, self.headers, random.randint(5, 20), random.randint(8, 20), "Hall"
        )
        if showtime_id:
            SHOWTIME_IDS.append(showtime_id)
