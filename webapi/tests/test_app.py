import socket
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient
from redis import exceptions as redis_exceptions
from sqlalchemy import create_engine
from sqlalchemy.exc import ProgrammingError

from webapi.app import create_app
from webapi.backend_client import BackendUnavailable, InMemoryBackendClient
from webapi.cache import InMemoryCacheClient, RedisCacheClient
from webapi.config import Settings
from webapi.database import DatabaseEngines
from webapi.dependencies import (
    get_app_settings,
    get_backend_client,
    get_cache_client,
    get_database_engines,
    get_instrumented_operation,
)
from webapi.schemas import BackendData
from webapi.tests.fakes import FakeControlEngine, FakeDbapiError
from webapi.tests.telemetry_helpers import TelemetryFixture


def provide(value):
    return lambda: value


class FailingBackendClient:
    def get_data(self):
        raise BackendUnavailable("connection refused")


class WebApiTests(unittest.TestCase):
    def setUp(self):
        self.app = create_app()
        self.client = TestClient(self.app)
        self.telemetry = TelemetryFixture()
        self.settings = Settings(
            api_prefix="",
            add_delay_seconds=0,
            services={"backend": {"https": {"0": "https://backend:8443"}}},
        )
        self.control = FakeControlEngine()
        self.target = create_engine("sqlite+pysqlite:///:memory:")
        self.cache = InMemoryCacheClient()

        overrides = self.app.dependency_overrides
        overrides[get_app_settings] = lambda: self.settings
        overrides[get_instrumented_operation] = self.telemetry.operation
        overrides[get_backend_client] = lambda: InMemoryBackendClient(
            BackendData(x=2, y=3)
        )
        overrides[get_cache_client] = lambda: self.cache
        overrides[get_database_engines] = lambda: DatabaseEngines(
            control=self.control, target=self.target, database_name="aspiredb"
        )

    def tearDown(self):
        self.app.dependency_overrides.clear()
        self.target.dispose()
        self.telemetry.shutdown()

    def test_ping(self):
        response = self.client.get("/ping")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "pong")

    def test_alive(self):
        self.assertEqual(self.client.get("/alive").json(), {"status": "ok"})

    def test_add_sums_backend_values_inside_span(self):
        response = self.client.get("/add")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"sum": 5})

        (span,) = self.telemetry.spans("Adding")
        self.assertEqual(span.attributes["sum"], 5)
        self.assertEqual(self.telemetry.counter_total(), 5)

    def test_add_defaults_each_missing_value_to_zero(self):
        for data, expected in (
            (BackendData(x=2, y=None), 2),
            (BackendData(x=None, y=3), 3),
            (None, 0),
        ):
            with self.subTest(data=data):
                self.app.dependency_overrides[get_backend_client] = provide(
                    InMemoryBackendClient(data)
                )
                response = self.client.get("/add")
                self.assertEqual(response.json(), {"sum": expected})

    def test_add_reports_backend_failure(self):
        self.app.dependency_overrides[get_backend_client] = FailingBackendClient
        response = self.client.get("/add")
        self.assertEqual(response.status_code, 502)
        self.assertEqual(self.telemetry.spans("Adding"), [])
        self.assertEqual(self.telemetry.counter_total(), 0)

    @patch("webapi.endpoints.socket.getaddrinfo")
    def test_ip_resolves_backend_reference(self, mock_getaddrinfo):
        mock_getaddrinfo.return_value = [
            (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.1.2.3", 0))
        ]
        response = self.client.get("/ip")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"service_reference": "backend", "port": "8443", "ip_address": "10.1.2.3"},
        )

    def test_ip_without_reference(self):
        self.settings = Settings(api_prefix="", services={})
        response = self.client.get("/ip")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {
                "service_reference": "",
                "port": "",
                "ip_address": "Service reference not available",
            },
        )

    def test_answer_from_db_provisions_then_queries(self):
        first = self.client.get("/answer-from-db")
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json(), {"answer": 42, "provisioning": "created"})

        second = self.client.get("/answer-from-db")
        self.assertEqual(second.json(), {"answer": 42, "provisioning": "already_exists"})
        self.assertEqual(self.control.create_statements(), ['CREATE DATABASE "aspiredb"'])

    def test_answer_from_db_surfaces_provisioning_failure(self):
        self.control.create_error = ProgrammingError(
            'CREATE DATABASE "aspiredb"',
            None,
            FakeDbapiError("permission denied to create database", "42501"),
        )
        response = self.client.get("/answer-from-db")
        self.assertEqual(response.status_code, 500)

    def test_answer_from_db_without_configuration(self):
        self.app.dependency_overrides[get_database_engines] = lambda: None
        response = self.client.get("/answer-from-db")
        self.assertEqual(response.status_code, 503)

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"status": "healthy", "checks": {"database": "ok", "cache": "ok"}},
        )

    def test_health_reports_unavailable_cache(self):
        self.cache.reachable = False
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["detail"]["checks"]["cache"], "unavailable")

    @patch("webapi.cache.redis.Redis.from_url")
    def test_health_reports_redis_timeout_as_unavailable(self, mock_from_url):
        mock_from_url.return_value.ping.side_effect = redis_exceptions.TimeoutError(
            "Timeout reading from socket"
        )
        self.cache = RedisCacheClient(url="redis://cache:6379/0")
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["detail"]["checks"]["cache"], "unavailable")


if __name__ == "__main__":
    unittest.main()
