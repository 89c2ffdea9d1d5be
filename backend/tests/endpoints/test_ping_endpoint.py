def test_ping_endpoint_reports_dependencies(client):
    """
    Validate the public health endpoint payload.

    1. Call the public ping endpoint without authentication.
    2. Parse the response payload returned by the backend.
    3. Validate DB and Redis connectivity flags are true.
    4. Validate demo mode is reported as disabled by default.
    """
    response = client.get("/api/v1/ping")
    assert response.status_code == 200

    payload = response.json()
    assert payload["message"].endswith("is running")
    assert payload["db_connected"] is True
    assert payload["redis_connected"] is True
    assert payload["demo_mode_enabled"] is False
