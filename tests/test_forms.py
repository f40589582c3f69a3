import main
import schemas


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


def test_contact_message_is_stored(client, mongo):
    resp = client.post("/api/contact", json={
        "nombre": "Pedro", "correo": " Pedro@Correo.CL ", "mensaje": "Quiero visitar la cervecería",
    })
    assert resp.status_code == 201
    assert resp.json() == {"success": True}
    stored = mongo[schemas.CONTACTS].find_one()
    assert stored["correo"] == "pedro@correo.cl"
    assert stored["nombre"] == "Pedro"


def test_contact_optional_fields_default_to_null(client, mongo):
    resp = client.post("/api/contact", json={"correo": "x@correo.cl"})
    assert resp.status_code == 201
    stored = mongo[schemas.CONTACTS].find_one()
    assert stored["nombre"] is None
    assert stored["mensaje"] is None


def test_contact_requires_email(client, mongo):
    resp = client.post("/api/contact", json={"nombre": "Pedro", "mensaje": "hola"})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Correo requerido."}
    assert mongo[schemas.CONTACTS].count_documents({}) == 0


def test_subscribe_twice_keeps_one_record(client, mongo):
    first = client.post("/api/contact", json={"correo": "fan@correo.cl", "type": "subscribe"})
    second = client.post("/api/contact", json={"correo": "FAN@correo.cl", "type": "subscribe"})

    assert first.status_code == 201
    assert first.json() == {"success": True}
    assert second.status_code == 200
    assert second.json() == {"success": True, "message": "Ya estabas suscrito."}
    assert mongo[schemas.NEWSLETTER].count_documents({}) == 1
    assert mongo[schemas.CONTACTS].count_documents({}) == 0


def test_subscribe_race_on_unique_index(client, mongo, monkeypatch):
    client.post("/api/contact", json={"correo": "fan@correo.cl", "type": "subscribe"})
    # lookup misses, so the insert trips the unique index on correo
    monkeypatch.setattr(main, "find_document", lambda collection, query: None)

    resp = client.post("/api/contact", json={"correo": "fan@correo.cl", "type": "subscribe"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Ya estabas suscrito."}
    assert mongo[schemas.NEWSLETTER].count_documents({}) == 1


def test_subscribe_requires_email(client):
    resp = client.post("/api/contact", json={"correo": "   ", "type": "subscribe"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_malformed_payload_uses_form_envelope(client):
    resp = client.post("/api/contact", json={"correo": ["not", "a", "string"]})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Solicitud inválida."}


RESERVATION = {
    "nombre": "Lucía",
    "correo": "lucia@correo.cl",
    "fecha": "2026-11-20",
    "hora": "20:30",
    "personas": "4",
}


def test_reservation_is_created(client, mongo):
    resp = client.post("/api/reservas", json=RESERVATION)
    assert resp.status_code == 201
    assert resp.json() == {"success": True}
    stored = mongo[schemas.RESERVATIONS].find_one()
    assert stored["personas"] == 4
    assert stored["mensaje"] == ""


def test_reservation_accepts_email_alias(client, mongo):
    payload = dict(RESERVATION)
    del payload["correo"]
    payload["email"] = " Lucia@Correo.CL"
    resp = client.post("/api/reservas", json=payload)
    assert resp.status_code == 201
    assert mongo[schemas.RESERVATIONS].find_one()["correo"] == "lucia@correo.cl"


def test_reservation_rejects_bad_party_size(client, mongo):
    for personas in ("0", "abc", "", "2.5", -1):
        resp = client.post("/api/reservas", json=dict(RESERVATION, personas=personas))
        assert resp.status_code == 400, personas
        assert resp.json() == {"success": False, "message": "Faltan campos o vienen inválidos."}
    assert mongo[schemas.RESERVATIONS].count_documents({}) == 0


def test_reservation_rejects_blank_fields(client):
    for field in ("nombre", "correo", "fecha", "hora"):
        resp = client.post("/api/reservas", json=dict(RESERVATION, **{field: "   "}))
        assert resp.status_code == 400, field


def test_reservation_rejects_party_size_too_large_for_a_float(client, mongo):
    resp = client.post("/api/reservas", json=dict(RESERVATION, personas=10 ** 400))
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Faltan campos o vienen inválidos."}
    assert mongo[schemas.RESERVATIONS].count_documents({}) == 0


def test_store_failure_is_a_generic_500(client, monkeypatch):
    import database
    monkeypatch.setattr(database, "db", None)
    resp = client.post("/api/reservas", json=RESERVATION)
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Error guardando reserva"}
