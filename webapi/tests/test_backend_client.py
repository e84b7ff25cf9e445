import unittest
from unittest.mock import MagicMock

import requests

from webapi.backend_client import BackendUnavailable, HttpBackendClient
from webapi.schemas import BackendData


def _response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class HttpBackendClientTests(unittest.TestCase):
    def setUp(self):
        self.client = HttpBackendClient(base_url="https://backend:8443/", timeout=2)
        self.client.session = MagicMock()

    def test_fetches_data(self):
        self.client.session.get.return_value = _response({"x": 4, "y": 5})
        data = self.client.get_data()
        self.assertEqual(data, BackendData(x=4, y=5))
        self.client.session.get.assert_called_once_with(
            "https://backend:8443/data", timeout=2
        )

    def test_accepts_partial_payloads(self):
        self.client.session.get.return_value = _response({"x": 1})
        self.assertEqual(self.client.get_data().total(), 1)

    def test_null_payload(self):
        self.client.session.get.return_value = _response(None)
        self.assertIsNone(self.client.get_data())

    def test_connection_failure(self):
        self.client.session.get.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(BackendUnavailable):
            self.client.get_data()

    def test_invalid_payload(self):
        self.client.session.get.return_value = _response({"x": "many"})
        with self.assertRaises(BackendUnavailable):
            self.client.get_data()


if __name__ == "__main__":
    unittest.main()
