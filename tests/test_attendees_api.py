"""
Testes HTTP do recurso /attendees.
"""


def test_register_attendee(client, make_event):
    event = make_event()

    resp = client.post(
        "/attendees",
        json={"name": "Ana", "email": "ana@example.com", "eventId": event["id"]},
    )

    assert resp.status_code == 201
    assert resp.json() == {
        "id": 1,
        "name": "Ana",
        "email": "ana@example.com",
        "eventId": event["id"],
    }


def test_event_id_may_be_a_numeric_string(client, make_event):
    event = make_event()

    resp = client.post(
        "/attendees",
        json={"name": "Ana", "email": "ana@example.com", "eventId": str(event["id"])},
    )

    assert resp.status_code == 201
    assert resp.json()["eventId"] == event["id"]


def test_unknown_event_returns_404_and_creates_nothing(client):
    resp = client.post("/attendees", json={"name": "Ana", "email": "ana@example.com", "eventId": 77})

    assert resp.status_code == 404
    assert resp.json()["error"] == "Event not found"
    assert client.get("/attendees").json() == []


def test_missing_fields(client):
    resp = client.post("/attendees", json={"name": "Ana"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing fields", "fields": ["email", "eventId"]}


def test_non_numeric_event_id(client):
    resp = client.post("/attendees", json={"name": "Ana", "email": "a@b.c", "eventId": "abc"})

    assert resp.status_code == 400
    assert resp.json()["fields"] == ["eventId"]


def test_no_email_format_or_duplicate_check(client, make_event):
    event = make_event()
    body = {"name": "Ana", "email": "not-an-email", "eventId": event["id"]}

    assert client.post("/attendees", json=body).status_code == 201
    assert client.post("/attendees", json=body).status_code == 201


def test_list_by_event(client, make_event):
    first = make_event(name="First")
    second = make_event(name="Second")
    client.post("/attendees", json={"name": "Ana", "email": "ana@x.io", "eventId": first["id"]})
    client.post("/attendees", json={"name": "Bia", "email": "bia@x.io", "eventId": second["id"]})
    client.post("/attendees", json={"name": "Caio", "email": "caio@x.io", "eventId": first["id"]})

    by_event = client.get(f"/events/{first['id']}/attendees").json()
    everyone = client.get("/api/attendees").json()
    filtered = client.get("/attendees", params={"eventId": second["id"]}).json()

    assert [a["name"] for a in by_event] == ["Ana", "Caio"]
    assert [a["name"] for a in everyone] == ["Ana", "Bia", "Caio"]
    assert [a["name"] for a in filtered] == ["Bia"]


def test_list_for_event_without_attendees(client, make_event):
    event = make_event()

    resp = client.get(f"/events/{event['id']}/attendees")

    assert resp.status_code == 200
    assert resp.json() == []


def test_non_decimal_digit_event_id_is_rejected(client):
    resp = client.post("/attendees", json={"name": "Ana", "email": "a@b.c", "eventId": "²"})

    assert resp.status_code == 400
    assert resp.json()["fields"] == ["eventId"]


def test_event_id_beyond_int_column_is_rejected(client):
    resp = client.post("/attendees", json={"name": "Ana", "email": "a@b.c", "eventId": 2**63})

    assert resp.status_code == 400
    assert resp.json()["fields"] == ["eventId"]


def test_over_length_name_and_email_are_rejected(client, make_event):
    event = make_event()

    resp = client.post(
        "/attendees",
        json={"name": "x" * 101, "email": "a" * 251 + "@x.io", "eventId": event["id"]},
    )

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid fields", "fields": ["name", "email"]}
    assert client.get("/attendees").json() == []


def test_list_for_id_beyond_int_column_is_empty(client):
    resp = client.get("/events/99999999999999999999/attendees")

    assert resp.status_code == 200
    assert resp.json() == []


def test_wrong_event_id_type_reports_the_field(client):
    resp = client.post("/attendees", json={"name": "Ana", "email": "a@b.c", "eventId": 1.5})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request body", "fields": ["eventId"]}
