"""Tests for the label API server."""
from unittest.mock import patch

import pytest

fastapi = pytest.importorskip("fastapi", reason="fastapi not installed (install with pip install lodlabel[api])")
from fastapi.testclient import TestClient

from lodlabel import api


@pytest.fixture
def client():
    return TestClient(api.app)


class TestLabelEndpoint:
    """Tests for GET /label."""

    @patch("lodlabel.resolvers.GndLabelResolver.resolve", return_value="Goethe")
    def test_found(self, mock_resolve, client):
        response = client.get("/label", params={"uri": "https://d-nb.info/gnd/118540238"})

        assert response.status_code == 200
        assert response.json() == {
            "uri": "https://d-nb.info/gnd/118540238",
            "label": "Goethe",
            "found": True,
        }
        mock_resolve.assert_called_once_with("https://d-nb.info/gnd/118540238", None)

    @patch("lodlabel.resolvers.LobidLabelResolver.resolve")
    def test_not_found(self, mock_resolve, client):
        uri = "https://lobid.org/resources/HT1"
        mock_resolve.return_value = uri

        response = client.get("/label", params={"uri": uri, "lang": "de"})

        assert response.status_code == 200
        assert response.json() == {"uri": uri, "label": None, "found": False}
        mock_resolve.assert_called_once_with(uri, "de")

    def test_unknown_namespace(self, client):
        response = client.get("/label", params={"uri": "https://example.org/x"})
        assert response.status_code == 404

    def test_missing_uri(self, client):
        response = client.get("/label")
        assert response.status_code == 422


class TestOtherEndpoints:
    """Tests for /resolvers and /health."""

    def test_resolvers(self, client):
        response = client.get("/resolvers")

        assert response.status_code == 200
        names = [r["name"] for r in response.json()]
        assert names == ["gnd", "lobid"]

    def test_health(self, client):
        response = client.get("/health")
        assert response.json()["status"] == "ok"
