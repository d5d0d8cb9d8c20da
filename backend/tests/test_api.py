"""
Tests per gli endpoint HTTP (FastAPI TestClient).

Verificano codici di stato, formato degli errori e serializzazione
degli importi come numeri JSON.
"""

from conftest import BOOKING_ID, CAR_ID, CLIENT_ID, run, seed_booking

API = "/api/v1"


def create_work_order(client, booking_id=BOOKING_ID):
    response = client.post(f"{API}/work-orders", json={"booking_id": booking_id})
    assert response.status_code == 201, response.text
    return response.json()


# ============================================================
# Tests per gli ordini di lavoro
# ============================================================


class TestWorkOrderEndpoints:
    """Tests per /work-orders."""

    def test_health(self, client):
        """Test endpoint di salute."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_create(self, client):
        """Test creazione: 201 con totali a zero."""
        data = create_work_order(client)
        assert data["booking_id"] == BOOKING_ID
        assert data["client_id"] == CLIENT_ID
        assert data["car_id"] == CAR_ID
        assert data["status"] == "created"
        assert data["total_amount"] == 0
        assert data["debt"] == 0

    def test_create_twice_conflicts(self, client):
        """Test seconda creazione per la stessa prenotazione: 409."""
        create_work_order(client)
        response = client.post(f"{API}/work-orders", json={"booking_id": BOOKING_ID})

        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_RESOURCE"

    def test_create_missing_booking(self, client):
        """Test prenotazione inesistente: 404."""
        response = client.post(f"{API}/work-orders", json={"booking_id": 999})
        assert response.status_code == 404
        assert response.json()["error_code"] == "BOOKING_NOT_FOUND"

    def test_invalid_body_is_400(self, client):
        """Test corpo non valido: 400 con l'elenco degli errori."""
        response = client.post(f"{API}/work-orders", json={"booking_id": "abc"})

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["extra"]["errors"]

    def test_invalid_path_id_is_400(self, client):
        """Test id non positivo nel path: 400."""
        assert client.get(f"{API}/work-orders/0").status_code == 400

    def test_get_missing(self, client):
        """Test ordine inesistente: 404."""
        response = client.get(f"{API}/work-orders/999")
        assert response.status_code == 404
        assert response.json()["error_code"] == "WORK_ORDER_NOT_FOUND"

    def test_list(self, client):
        """Test lista paginata."""
        create_work_order(client)
        response = client.get(f"{API}/work-orders", params={"status": "created"})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["total_pages"] == 1
        assert body["items"][0]["booking_id"] == BOOKING_ID


class TestScenarioEndpoints:
    """Scenario completo via HTTP."""

    def test_scenario(self, client):
        """Test voce, materiale e pagamento: totale 5700, debito 0."""
        work_order_id = create_work_order(client)["id"]
        base = f"{API}/work-orders/{work_order_id}"

        response = client.post(f"{base}/work-items", json={"name": "Замена масла", "qty": 1, "unit_price": 2500})
        assert response.status_code == 201
        body = response.json()
        assert body["item"]["line_total"] == 2500.0
        assert body["totals"]["total_amount"] == 2500.0

        response = client.post(f"{base}/material-items", json={"name": "Масло", "qty": 4, "price": 800})
        assert response.status_code == 201
        assert response.json()["totals"]["total_amount"] == 5700.0

        response = client.post(f"{base}/payments", json={"amount": 5700, "method": "card"})
        assert response.status_code == 201
        body = response.json()
        assert body["payment"]["method"] == "card"
        assert body["work_order"]["paid_amount"] == 5700.0
        assert body["work_order"]["debt"] == 0.0

        full = client.get(f"{base}/full").json()
        assert full["work_order"]["total_amount"] == 5700.0
        assert len(full["work_items"]) == 1
        assert len(full["material_items"]) == 1
        assert [entry["action"] for entry in full["audit_log"]] == [
            "create",
            "add_work_item",
            "add_material_item",
            "payment",
        ]

    def test_zero_qty_is_400(self, client):
        """Test qty=0 rifiutata con 400, totale invariato."""
        work_order_id = create_work_order(client)["id"]
        response = client.post(
            f"{API}/work-orders/{work_order_id}/work-items", json={"name": "Voce", "qty": 0}
        )

        assert response.status_code == 400
        assert client.get(f"{API}/work-orders/{work_order_id}").json()["total_amount"] == 0

    def test_float_payment_amount_accepted(self, client):
        """Test importo float con rumore binario: 201, arrotondato al centesimo."""
        work_order_id = create_work_order(client)["id"]
        response = client.post(
            f"{API}/work-orders/{work_order_id}/payments", json={"amount": 0.30000000000000004}
        )

        assert response.status_code == 201, response.text
        assert response.json()["payment"]["amount"] == 0.3
        assert response.json()["work_order"]["paid_amount"] == 0.3

    def test_three_decimal_price_accepted(self, client):
        """Test prezzo con tre decimali: 201, arrotondato ROUND_HALF_UP."""
        work_order_id = create_work_order(client)["id"]
        response = client.post(
            f"{API}/work-orders/{work_order_id}/work-items", json={"name": "Voce", "unit_price": 10.005}
        )

        assert response.status_code == 201, response.text
        assert response.json()["item"]["unit_price"] == 10.01
        assert response.json()["totals"]["total_amount"] == 10.01

    def test_fractional_material_qty(self, client):
        """Test quantità di materiale a tre decimali conservata."""
        work_order_id = create_work_order(client)["id"]
        response = client.post(
            f"{API}/work-orders/{work_order_id}/material-items",
            json={"name": "Olio", "qty": 0.125, "unit_price": 8},
        )

        assert response.status_code == 201, response.text
        assert response.json()["item"]["qty"] == 0.125
        assert response.json()["totals"]["total_amount"] == 1.0

    def test_idempotency_key_header(self, client):
        """Test un retry con la stessa Idempotency-Key non duplica la voce."""
        work_order_id = create_work_order(client)["id"]
        url = f"{API}/work-orders/{work_order_id}/work-items"
        headers = {"Idempotency-Key": "a1b2c3"}

        first = client.post(url, json={"name": "Diagnosi", "unit_price": 40}, headers=headers)
        second = client.post(url, json={"name": "Diagnosi", "unit_price": 40}, headers=headers)

        assert first.json()["item"]["id"] == second.json()["item"]["id"]
        assert second.json()["totals"]["total_amount"] == 40.0

    def test_recalculate(self, client):
        """Test ricalcolo: 200 con i totali correnti."""
        work_order_id = create_work_order(client)["id"]
        client.post(f"{API}/work-orders/{work_order_id}/work-items", json={"name": "Voce", "unit_price": 12.5})

        response = client.post(f"{API}/work-orders/{work_order_id}/recalculate")
        assert response.status_code == 200
        assert response.json()["total_amount"] == 12.5


class TestStatusEndpoint:
    """Tests per PATCH /work-orders/{id}/status."""

    def test_valid_transition(self, client):
        """Test transizione valida: 200."""
        work_order_id = create_work_order(client)["id"]
        response = client.patch(f"{API}/work-orders/{work_order_id}/status", json={"status": "in_progress"})

        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"

    def test_unknown_status_is_400(self, client):
        """Test stato sconosciuto: 400, stato invariato."""
        work_order_id = create_work_order(client)["id"]
        response = client.patch(f"{API}/work-orders/{work_order_id}/status", json={"status": "done"})

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_STATUS"
        assert client.get(f"{API}/work-orders/{work_order_id}").json()["status"] == "created"

    def test_invalid_transition_is_409(self, client):
        """Test transizione non ammessa: 409."""
        work_order_id = create_work_order(client)["id"]
        response = client.patch(f"{API}/work-orders/{work_order_id}/status", json={"status": "closed"})

        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_STATUS_TRANSITION"

    def test_missing_order_is_404(self, client):
        """Test ordine inesistente: 404."""
        response = client.patch(f"{API}/work-orders/999/status", json={"status": "in_progress"})
        assert response.status_code == 404

    def test_cancelled_order_rejects_items(self, client):
        """Test ordine annullato: nuove voci rifiutate con 409."""
        work_order_id = create_work_order(client)["id"]
        client.patch(f"{API}/work-orders/{work_order_id}/status", json={"status": "cancelled"})

        response = client.post(f"{API}/work-orders/{work_order_id}/work-items", json={"name": "Extra"})
        assert response.status_code == 409
        assert response.json()["error_code"] == "WORK_ORDER_LOCKED"


# ============================================================
# Tests per le prenotazioni
# ============================================================


class TestBookingEndpoints:
    """Tests per /bookings."""

    def test_get_booking(self, client):
        """Test dettaglio della prenotazione di test."""
        response = client.get(f"{API}/bookings/{BOOKING_ID}")
        assert response.status_code == 200
        assert response.json()["car_id"] == CAR_ID

    def test_create_booking(self, client):
        """Test creazione prenotazione: 201 in stato 'pending'."""
        response = client.post(
            f"{API}/bookings",
            json={"client_id": CLIENT_ID, "car_id": CAR_ID, "scheduled_at": "2026-04-01T08:00:00"},
        )
        assert response.status_code == 201
        assert response.json()["status"] == "pending"
        assert len(client.get(f"{API}/bookings").json()) == 2

    def test_missing_client_is_404(self, client):
        """Test cliente inesistente: 404."""
        response = client.post(
            f"{API}/bookings",
            json={"client_id": 2, "car_id": CAR_ID, "scheduled_at": "2026-04-01T08:00:00"},
        )
        assert response.status_code == 404

    def test_car_of_other_client_is_400(self, client, seeded):
        """Test auto di un altro cliente: 400."""
        run(seed_booking(seeded, booking_id=60, client_id=2, car_id=60, plate="OTHER60"))
        response = client.post(
            f"{API}/bookings",
            json={"client_id": CLIENT_ID, "car_id": 60, "scheduled_at": "2026-04-01T08:00:00"},
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_change_booking_status(self, client):
        """Test cambio stato prenotazione."""
        response = client.patch(f"{API}/bookings/{BOOKING_ID}/status", json={"status": "confirmed"})
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
