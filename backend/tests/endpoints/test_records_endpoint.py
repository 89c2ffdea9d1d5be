from tests.helpers.auth import principal_header
from tests.helpers.factories import create_fee


def _ids(response) -> set[str]:
    return {item["id"] for item in response.json()["items"]}


def test_restricted_principal_lists_only_home_branch_students(client, seeded):
    """
    Validate the restricted-principal scenario over HTTP.

    1. List students as the branch-one teacher.
    2. Validate branch-one and unassigned students are present.
    3. Validate the branch-two and other-school students are absent.
    """
    response = client.get("/api/v1/students", headers=principal_header(seeded["teacher"].id))
    assert response.status_code == 200
    ids = _ids(response)
    assert ids == {str(seeded["student_b1"].id), str(seeded["student_unassigned"].id)}
    assert str(seeded["student_b2"].id) not in ids


def test_unrestricted_admin_lists_students_of_every_branch(client, seeded):
    """
    Validate the unrestricted-admin scenario over HTTP.

    1. List students as the unassigned admin.
    2. Validate both branches of the school are present.
    3. Validate the other school is absent.
    """
    response = client.get("/api/v1/students", headers=principal_header(seeded["admin"].id))
    assert response.status_code == 200
    ids = _ids(response)
    assert {str(seeded["student_b1"].id), str(seeded["student_b2"].id)} <= ids
    assert str(seeded["student_south"].id) not in ids


def test_students_list_applies_search_and_pagination(client, seeded):
    """
    Validate the paginated envelope.

    1. List students as the admin with a search term and a limit.
    2. Validate only the matching student is returned.
    3. Validate the pagination metadata.
    """
    response = client.get(
        "/api/v1/students?search=branch&limit=1",
        headers=principal_header(seeded["admin"].id),
    )
    assert response.status_code == 200
    payload = response.json()
    assert len(payload["items"]) == 1
    assert payload["pagination"]["total"] == 3
    assert payload["pagination"]["filtered_total"] == 2
    assert payload["pagination"]["has_next"] is True


def test_get_out_of_scope_student_is_404(client, seeded):
    """
    Validate denied rows look absent.

    1. Fetch the branch-two student as the branch-one teacher.
    2. Validate the response is 404.
    """
    response = client.get(
        f"/api/v1/students/{seeded['student_b2'].id}", headers=principal_header(seeded["teacher"].id)
    )
    assert response.status_code == 404


def test_create_student_ignores_client_school_id(client, seeded):
    """
    Validate client tenant ids are ignored.

    1. Create a student as the north admin with the south school id in the body.
    2. Validate the created student belongs to the north school.
    """
    response = client.post(
        "/api/v1/students",
        json={"full_name": "Eve", "school_id": str(seeded["south"].id)},
        headers=principal_header(seeded["admin"].id),
    )
    assert response.status_code == 201
    assert response.json()["school_id"] == str(seeded["north"].id)


def test_create_student_forbidden_for_teacher(client, seeded):
    """
    Validate role write rules over HTTP.

    1. Create a student as the teacher.
    2. Validate the response is 403.
    """
    response = client.post(
        "/api/v1/students", json={"full_name": "Nope"}, headers=principal_header(seeded["teacher"].id)
    )
    assert response.status_code == 403


def test_restricted_admin_cannot_write_into_other_branch(client, seeded):
    """
    Validate branch pinning over HTTP.

    1. Create a class on branch two as the branch-one admin.
    2. Validate the response is 400.
    """
    response = client.post(
        "/api/v1/classes",
        json={"name": "12C", "branch_id": str(seeded["north_b2"].id)},
        headers=principal_header(seeded["branch_admin"].id),
    )
    assert response.status_code == 400


def test_fee_lifecycle_inside_branch(client, seeded):
    """
    Validate fee create, update, read and delete.

    1. Create a fee for the branch-one student as the branch-one admin.
    2. Update its status to paid.
    3. Read it back and validate the status.
    4. Delete it and validate a later read is 404.
    """
    headers = principal_header(seeded["branch_admin"].id)
    created = client.post(
        "/api/v1/fees",
        json={"student_id": str(seeded["student_b1"].id), "title": "Books", "amount": "35.50"},
        headers=headers,
    )
    assert created.status_code == 201
    fee_id = created.json()["id"]
    assert created.json()["branch_id"] == str(seeded["north_b1"].id)

    updated = client.put(f"/api/v1/fees/{fee_id}", json={"status": "paid"}, headers=headers)
    assert updated.status_code == 200
    assert client.get(f"/api/v1/fees/{fee_id}", headers=headers).json()["status"] == "paid"

    assert client.delete(f"/api/v1/fees/{fee_id}", headers=headers).status_code == 204
    assert client.get(f"/api/v1/fees/{fee_id}", headers=headers).status_code == 404


def test_fees_list_hides_other_branch(client, seeded, db_session):
    """
    Validate fee visibility by branch.

    1. Seed fees on branch one and branch two.
    2. List fees as the parent of branch two.
    3. Validate only the branch-two fee is returned.
    """
    create_fee(db_session, seeded["north"].id, seeded["student_b1"].id, seeded["north_b1"].id, title="B1 fee")
    b2_fee = create_fee(db_session, seeded["north"].id, seeded["student_b2"].id, seeded["north_b2"].id)
    response = client.get("/api/v1/fees", headers=principal_header(seeded["parent"].id))
    assert response.status_code == 200
    assert _ids(response) == {str(b2_fee.id)}


def test_teacher_records_attendance(client, seeded):
    """
    Validate attendance writes by teachers over HTTP.

    1. Record attendance for the branch-one student as the teacher.
    2. Validate the recorder and branch in the response.
    """
    response = client.post(
        "/api/v1/attendance",
        json={"student_id": str(seeded["student_b1"].id), "attendance_date": "2026-10-05", "status": "late"},
        headers=principal_header(seeded["teacher"].id),
    )
    assert response.status_code == 201
    payload = response.json()
    assert payload["recorded_by"] == str(seeded["teacher"].id)
    assert payload["branch_id"] == str(seeded["north_b1"].id)
