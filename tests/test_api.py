from fastapi.testclient import TestClient

from app.config import Settings
from app.errors import StorageError
from app.main import build_store, create_app
from app.store import JSONStore, MemoryStore

ADMIN = "admin@example.com"

ADMIN_HEADERS = {"X-User-Email": ADMIN}


def user(email):
    return {"X-User-Email": email}


def create_slot(client, capacity=1, when="2030-01-01T10:00:00Z"):
    svc = client.post(
        "/admin/services",
        json={"name": "Haircut", "duration": 30},
        headers=ADMIN_HEADERS,
    ).json()
    return client.post(
        f"/admin/services/{svc['id']}/slots",
        json={"datetime": when, "capacity": capacity},
        headers=ADMIN_HEADERS,
    ).json()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_login_echoes_email(client):
    r = client.post("/auth/login", json={"email": "a@x.com"})
    assert r.status_code == 200
    assert r.json() == {"email": "a@x.com"}


def test_login_requires_email(client):
    r = client.post("/auth/login", json={})
    assert r.status_code == 400
    assert r.json() == {"error": "email required"}


def test_admin_routes_require_privilege(client):
    r = client.post("/admin/services", json={"name": "Haircut"}, headers=user("a@x.com"))
    assert r.status_code == 403
    assert r.json() == {"error": "admin only"}

    r = client.post("/admin/services/svc_1/slots", json={"datetime": "2030-01-01T10:00:00Z"})
    assert r.status_code == 403


def test_create_service_and_list(client):
    r = client.post(
        "/admin/services",
        json={"name": "Haircut", "description": "Short back and sides", "duration": 30},
        headers=ADMIN_HEADERS,
    )
    assert r.status_code == 201
    svc = r.json()
    assert svc["id"].startswith("svc_")
    assert svc["durationMinutes"] == 30

    listed = client.get("/services").json()
    assert [s["id"] for s in listed] == [svc["id"]]


def test_create_service_without_name(client):
    r = client.post("/admin/services", json={"name": ""}, headers=ADMIN_HEADERS)
    assert r.status_code == 400
    assert r.json() == {"error": "name required"}


def test_add_slot_and_list(client):
    slot = create_slot(client, capacity=0)
    assert slot["capacity"] == 1
    assert slot["datetime"] == "2030-01-01T10:00:00Z"

    listed = client.get(f"/services/{slot['serviceId']}/slots").json()
    assert [s["id"] for s in listed] == [slot["id"]]


def test_add_slot_bad_datetime(client):
    r = client.post(
        "/admin/services/svc_1/slots",
        json={"datetime": "01/01/2030 10:00", "capacity": 1},
        headers=ADMIN_HEADERS,
    )
    assert r.status_code == 400
    assert r.json() == {"error": "invalid datetime (use RFC3339)"}


def test_booking_flow(client):
    slot = create_slot(client)

    r = client.post("/reservations", json={"slotId": slot["id"]}, headers=user("a@x.com"))
    assert r.status_code == 201
    res = r.json()
    assert res["slotId"] == slot["id"]
    assert res["userEmail"] == "a@x.com"

    r = client.post("/reservations", json={"slotId": slot["id"]}, headers=user("b@x.com"))
    assert r.status_code == 409
    assert r.json() == {"error": "slot is full"}

    r = client.post("/reservations", json={"slotId": slot["id"]}, headers=user("a@x.com"))
    assert r.json() == {"error": "already booked this slot"}

    mine = client.get("/reservations/me", headers=user("a@x.com")).json()
    assert [m["id"] for m in mine] == [res["id"]]

    r = client.delete(f"/reservations/{res['id']}", headers=user("b@x.com"))
    assert r.status_code == 403
    assert r.json() == {"error": "not your reservation"}

    r = client.delete(f"/reservations/{res['id']}", headers=user("a@x.com"))
    assert r.status_code == 200
    assert r.json() == {"status": "deleted"}

    r = client.post("/reservations", json={"slotId": slot["id"]}, headers=user("b@x.com"))
    assert r.status_code == 201


def test_book_without_identity(client):
    slot = create_slot(client)
    r = client.post("/reservations", json={"slotId": slot["id"]})
    assert r.status_code == 400
    assert r.json() == {"error": "missing user email"}


def test_book_unknown_slot(client):
    r = client.post("/reservations", json={"slotId": "slt_missing"}, headers=user("a@x.com"))
    assert r.status_code == 404
    assert r.json() == {"error": "slot not found"}


def test_cancel_unknown_reservation(client):
    r = client.delete("/reservations/res_missing", headers=user("a@x.com"))
    assert r.status_code == 404


def test_cancel_past_reservation(client):
    slot = create_slot(client, when="2001-01-01T10:00:00Z")
    res = client.post("/reservations", json={"slotId": slot["id"]}, headers=user("a@x.com")).json()

    r = client.delete(f"/reservations/{res['id']}", headers=user("a@x.com"))
    assert r.status_code == 400
    assert r.json() == {"error": "cannot cancel past reservations"}


def test_storage_error_maps_to_500(tmp_path):
    class BrokenStore(MemoryStore):
        def _persist(self):
            raise StorageError("could not save data")

    settings = Settings(admin_emails=ADMIN, static_dir=str(tmp_path / "no-web"))
    client = TestClient(create_app(settings, store=BrokenStore()))

    r = client.post("/admin/services", json={"name": "Haircut"}, headers=ADMIN_HEADERS)
    assert r.status_code == 500
    assert r.json() == {"error": "could not save data"}


def test_static_files_mounted(tmp_path):
    web = tmp_path / "web"
    web.mkdir()
    (web / "index.html").write_text("<h1>Booking</h1>")
    settings = Settings(store_backend="memory", static_dir=str(web))
    client = TestClient(create_app(settings))

    assert "Booking" in client.get("/").text
    assert client.get("/services").json() == []


def test_build_store(tmp_path):
    assert isinstance(build_store(Settings(store_backend="memory")), MemoryStore)
    assert isinstance(build_store(Settings(store_backend="json", data_dir=str(tmp_path))), JSONStore)


def test_null_capacity_defaults_to_one(client):
    r = client.post(
        "/admin/services/svc_1/slots",
        json={"datetime": "2030-01-01T10:00:00Z", "capacity": None},
        headers=ADMIN_HEADERS,
    )
    assert r.status_code == 201
    assert r.json()["capacity"] == 1


def test_missing_bodies_reach_the_booking_rules(client):
    r = client.post("/reservations", headers=user("a@x.com"))
    assert r.status_code == 404
    assert r.json() == {"error": "slot not found"}

    r = client.post("/reservations")
    assert r.status_code == 400
    assert r.json() == {"error": "missing user email"}

    r = client.post("/admin/services/svc_1/slots", headers=ADMIN_HEADERS)
    assert r.status_code == 400
    assert r.json() == {"error": "invalid datetime (use RFC3339)"}

    r = client.post("/admin/services", json={"name": None}, headers=ADMIN_HEADERS)
    assert r.status_code == 400
    assert r.json() == {"error": "name required"}

    r = client.post("/auth/login")
    assert r.status_code == 400
    assert r.json() == {"error": "email required"}
