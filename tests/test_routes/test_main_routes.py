"""
Smoke tests for the main blueprint routes.

These verify that the application starts up correctly and the
health check and API index endpoints respond.
"""


class TestHealthCheck:
    """Tests for the health check endpoint."""

    def test_health_check_returns_200(self, client):
        """The health check should return HTTP 200 when the database answers."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"


class TestApiIndex:
    def test_lists_resource_collections(self, client):
        response = client.get("/api")
        assert response.status_code == 200
        resources = response.get_json()["resources"]
        assert "/api/assets" in resources
        assert "/api/asset-pos" in resources


class TestErrorBodies:
    """Unknown routes and methods still answer in JSON."""

    def test_unknown_route(self, client):
        response = client.get("/no-such-page")
        assert response.status_code == 404
        assert response.get_json()["error"] == "NOT_FOUND"

    def test_wrong_method(self, client):
        response = client.delete("/api")
        assert response.status_code == 405
        assert response.get_json()["error"] == "METHOD_NOT_ALLOWED"
