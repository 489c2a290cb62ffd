"""Test helpers shared across modules."""

from fastapi.testclient import TestClient

START_TIME = 1_700_000_000.0
STRONG_PASSWORD = "Str0ng!Passw0rd"


class ManualClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, start: float = START_TIME):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def register_user(
    client: TestClient,
    email: str = "owner@example.com",
    password: str = STRONG_PASSWORD,
    ip: str = "10.0.0.1",
    **fields,
):
    payload = {
        "fullName": "Store Owner",
        "email": email,
        "password": password,
        "confirmPassword": password,
        "role": "small_business_owner",
        "businessStage": "have_products",
        "productCategory": "home_living",
    }
    payload.update(fields)
    return client.post("/api/auth/register", json=payload, headers={"X-Forwarded-For": ip})


def login_user(
    client: TestClient,
    email: str = "owner@example.com",
    password: str = STRONG_PASSWORD,
    ip: str = "10.0.0.1",
    remember: bool = False,
):
    return client.post(
        "/api/auth/login",
        json={"email": email, "password": password, "remember": remember},
        headers={"X-Forwarded-For": ip},
    )


def auth_headers(token: str, ip: str = "10.0.0.1") -> dict:
    return {"Authorization": f"Bearer {token}", "X-Forwarded-For": ip}
