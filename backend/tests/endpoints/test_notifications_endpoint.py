from tests.helpers.auth import principal_header


def _titles(client, user) -> set[str]:
    response = client.get("/api/v1/notifications", headers=principal_header(user.id))
    assert response.status_code == 200
    return {item["title"] for item in response.json()["items"]}


def test_staff_broadcast_reaches_only_matching_roles_in_school(client, seeded):
    """
    Validate the broadcast scenario over HTTP.

    1. Post a broadcast for teachers and admins as the admin.
    2. Validate the teacher and the admin see it.
    3. Validate the parent of the same school does not.
    4. Validate the admin of another school does not.
    """
    response = client.post(
        "/api/v1/notifications",
        json={"title": "Staff briefing", "body": "Friday 8am", "audience": ["teacher", "admin"]},
        headers=principal_header(seeded["admin"].id),
    )
    assert response.status_code == 201
    assert response.json()["user_id"] is None

    assert "Staff briefing" in _titles(client, seeded["teacher"])
    assert "Staff briefing" in _titles(client, seeded["admin"])
    assert "Staff briefing" not in _titles(client, seeded["parent"])
    assert "Staff briefing" not in _titles(client, seeded["south_admin"])


def test_direct_notification_is_private_to_recipient(client, seeded):
    """
    Validate direct notifications.

    1. Fetch the teacher's direct notification as the teacher.
    2. Fetch it as the branch-one admin.
    3. Validate only the recipient can read it.
    """
    notification_id = seeded["direct_teacher"].id
    own = client.get(f"/api/v1/notifications/{notification_id}", headers=principal_header(seeded["teacher"].id))
    assert own.status_code == 200
    assert own.json()["title"] == "For the teacher"
    other = client.get(
        f"/api/v1/notifications/{notification_id}", headers=principal_header(seeded["branch_admin"].id)
    )
    assert other.status_code == 404


def test_broadcast_without_audience_is_rejected(client, seeded):
    """
    Validate broadcasts need an audience.

    1. Post a broadcast with an empty audience.
    2. Validate the response is 400.
    """
    response = client.post(
        "/api/v1/notifications",
        json={"title": "Nobody", "body": "Nothing", "audience": []},
        headers=principal_header(seeded["admin"].id),
    )
    assert response.status_code == 400


def test_parent_cannot_post_notifications(client, seeded):
    """
    Validate notification write roles.

    1. Post a notification as the parent.
    2. Validate the response is 403.
    """
    response = client.post(
        "/api/v1/notifications",
        json={"title": "Hi", "body": "There", "audience": ["all"]},
        headers=principal_header(seeded["parent"].id),
    )
    assert response.status_code == 403
