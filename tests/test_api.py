import json
import tempfile
import unittest

import requests
from fastapi.testclient import TestClient

from weather_relay import open_meteo_client
from weather_relay.api import COORDINATES_HINT, GENERIC_DECODE_ERROR, GENERIC_TRANSPORT_ERROR
from weather_relay.config import Settings
from weather_relay.main import create_app

FAKE_UPSTREAM = "http://upstream.test/v1/forecast"

FIXTURE = {
    "latitude": 51.5,
    "longitude": -0.120000124,
    "generationtime_ms": 0.0421,
    "utc_offset_seconds": 0,
    "timezone": "Europe/London",
    "timezone_abbreviation": "GMT",
    "elevation": 23.0,
    "current_weather": {
        "time": "2024-01-01T12:00",
        "temperature": 8.4,
        "windspeed": 14.2,
        "winddirection": 250.0,
        "weathercode": 3,
    },
}


class DummyResp:
    def __init__(self, content: bytes, status_code: int = 200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")


class FakeSession:
    def __init__(self, content: bytes = b"", exc: Exception | None = None):
        self.content = content
        self.exc = exc
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        if self.exc is not None:
            raise self.exc
        return DummyResp(self.content)


class TestWeatherApi(unittest.TestCase):
    def setUp(self):
        self._orig_session = open_meteo_client.session
        self._static = tempfile.TemporaryDirectory()
        self.addCleanup(self._static.cleanup)

    def tearDown(self):
        open_meteo_client.session = self._orig_session

    def _client(self, **overrides) -> TestClient:
        settings = Settings(static_dir=self._static.name, upstream_url=FAKE_UPSTREAM, **overrides)
        return TestClient(create_app(settings))

    def _stub(self, content: bytes = b"", exc: Exception | None = None) -> FakeSession:
        fake = FakeSession(content=content, exc=exc)
        open_meteo_client.session = fake
        return fake

    def test_weather_200_round_trips_fixture(self):
        fake = self._stub(json.dumps(FIXTURE).encode())
        client = self._client()

        resp = client.get("/weather/51.5074/-0.1278")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.headers["content-type"].startswith("application/json"))
        data = resp.json()
        self.assertEqual(data["latitude"], FIXTURE["latitude"])
        self.assertEqual(data["longitude"], FIXTURE["longitude"])
        self.assertEqual(data["current_weather"], FIXTURE["current_weather"])
        self.assertEqual(len(fake.calls), 1)

    def test_weather_forwards_plain_decimal_coordinates(self):
        fake = self._stub(json.dumps(FIXTURE).encode())
        client = self._client()

        for lat, lon, expected in [
            ("51.5074", "-0.1278", ("51.507400", "-0.127800")),
            ("1e-5", "2E2", ("0.000010", "200.000000")),
            ("-89.999999", "179.5", ("-89.999999", "179.500000")),
        ]:
            with self.subTest(lat=lat, lon=lon):
                fake.calls.clear()
                resp = client.get(f"/weather/{lat}/{lon}")
                self.assertEqual(resp.status_code, 200)
                self.assertEqual(len(fake.calls), 1)
                url, params = fake.calls[0]
                self.assertEqual(url, FAKE_UPSTREAM)
                self.assertEqual((params["latitude"], params["longitude"]), expected)

    def test_empty_segments_400(self):
        fake = self._stub()
        client = self._client()

        for path in ["/weather//", "/weather/", "/weather", "/weather/51.5/", "/weather//0.1"]:
            with self.subTest(path=path):
                resp = client.get(path)
                self.assertEqual(resp.status_code, 400)
                self.assertEqual(resp.json()["detail"], COORDINATES_HINT)
        self.assertEqual(fake.calls, [])

    def test_trailing_segments_still_relay(self):
        fake = self._stub(json.dumps(FIXTURE).encode())
        client = self._client()

        for path in ["/weather/51.5/0.1/", "/weather/51.5/0.1/extra", "/weather/51.5/0.1/extra/more"]:
            with self.subTest(path=path):
                fake.calls.clear()
                resp = client.get(path)
                self.assertEqual(resp.status_code, 200)
                self.assertEqual(resp.json()["current_weather"], FIXTURE["current_weather"])
                self.assertEqual(len(fake.calls), 1)
                _, params = fake.calls[0]
                self.assertEqual((params["latitude"], params["longitude"]), ("51.500000", "0.100000"))

    def test_trailing_segments_still_require_get(self):
        fake = self._stub()
        client = self._client()

        self.assertEqual(client.post("/weather/51.5/0.1/extra").status_code, 405)
        self.assertEqual(fake.calls, [])

    def test_invalid_latitude_400(self):
        fake = self._stub()
        client = self._client()

        resp = client.get("/weather/abc/0")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("latitude", resp.json()["detail"])
        self.assertEqual(fake.calls, [])

    def test_invalid_longitude_400(self):
        self._stub()
        client = self._client()

        resp = client.get("/weather/0/abc")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("longitude", resp.json()["detail"])

    def test_non_finite_coordinate_400(self):
        self._stub()
        client = self._client()

        self.assertEqual(client.get("/weather/nan/0").status_code, 400)
        self.assertEqual(client.get("/weather/0/inf").status_code, 400)

    def test_separators_and_padding_rejected(self):
        fake = self._stub()
        client = self._client()

        resp = client.get("/weather/1_0/0")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("latitude", resp.json()["detail"])

        resp = client.get("/weather/0/%201.5")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("longitude", resp.json()["detail"])

        resp = client.get("/weather/51.5abc/0")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(fake.calls, [])

    def test_post_405(self):
        fake = self._stub()
        client = self._client()

        resp = client.post("/weather/51.5/0.1")
        self.assertEqual(resp.status_code, 405)
        self.assertEqual(resp.headers["allow"], "GET")
        self.assertEqual(fake.calls, [])

    def test_method_checked_before_coordinates(self):
        self._stub()
        client = self._client()

        self.assertEqual(client.delete("/weather//").status_code, 405)
        self.assertEqual(client.put("/weather/abc/0").status_code, 405)

    def test_malformed_upstream_json_500(self):
        self._stub(b"<html>gateway timeout</html>")
        client = self._client()

        resp = client.get("/weather/51.5/0.1")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["detail"], GENERIC_DECODE_ERROR)

    def test_upstream_connection_refused_500(self):
        self._stub(exc=requests.ConnectionError("[Errno 111] Connection refused"))
        client = self._client()

        resp = client.get("/weather/51.5/0.1")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["detail"], GENERIC_TRANSPORT_ERROR)

    def test_upstream_error_text_exposed_when_enabled(self):
        self._stub(exc=requests.ConnectionError("[Errno 111] Connection refused"))
        client = self._client(expose_upstream_errors=True)

        resp = client.get("/weather/51.5/0.1")
        self.assertEqual(resp.status_code, 500)
        self.assertIn("Connection refused", resp.json()["detail"])

    def test_upstream_decode_text_exposed_when_enabled(self):
        self._stub(b"{}")
        client = self._client(expose_upstream_errors=True)

        resp = client.get("/weather/51.5/0.1")
        self.assertEqual(resp.status_code, 500)
        self.assertIn("current_weather", resp.json()["detail"])


if __name__ == "__main__":
    unittest.main()
