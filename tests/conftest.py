import json as jsonlib

import pytest
import requests

from desktop_telemetry import CollectorSettings, IdentityStore, SessionTracker, build_tracker


def make_response(status_code=204, body=None, reason=None, headers=None):
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason or {200: "OK", 204: "No Content", 400: "Bad Request", 500: "Internal Server Error"}.get(
        status_code, ""
    )
    if body is None:
        response._content = b""
    elif isinstance(body, (dict, list)):
        response._content = jsonlib.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    else:
        response._content = str(body).encode("utf-8")
    response.headers.update(headers or {})
    return response


class FakeSession:
    """Stands in for requests.Session; records every POST."""

    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.calls = []

    def post(self, url, params=None, json=None, headers=None, timeout=None):
        self.calls.append(
            {"url": url, "params": params, "json": json, "headers": headers, "timeout": timeout}
        )
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses.pop(0)
        return make_response(204)


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def configured_settings():
    return CollectorSettings(
        measurement_id="G-TEST123",
        api_secret="secret-value",
        app_name="Studio",
        app_version="1.4.2",
    )


@pytest.fixture
def identity(tmp_path):
    return IdentityStore(storage_dir=tmp_path / "Studio", machine_id_fn=lambda: "machine-hash")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_tracker(configured_settings, identity, clock):
    def factory(settings=None, http_session=None, surface_locator=None):
        return build_tracker(
            settings or configured_settings,
            identity=identity,
            session=SessionTracker(time_fn=clock, session_id="1700000000"),
            http_session=http_session or FakeSession(),
            surface_locator=surface_locator,
        )

    return factory
