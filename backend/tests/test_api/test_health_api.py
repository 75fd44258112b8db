"""
Tests for the health endpoint
"""


def test_health_connected(client, mock_db):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"]["status"] == "connected"
    mock_db.ping.assert_called_once()


def test_health_degraded_when_database_is_down(client, mock_db):
    mock_db.ping.side_effect = RuntimeError("connection refused")

    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "degraded"
    assert body["database"]["error"] == "connection refused"
