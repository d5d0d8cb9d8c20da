"""
Unit tests per gli schemi Pydantic degli ordini di lavoro.
"""

import datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from autoservice.schemas.work_order import (
    MaterialItemCreate,
    PaymentCreate,
    PaymentMethod,
    WorkItemCreate,
    WorkOrderCreate,
    WorkOrderList,
    WorkOrderRead,
)


# ============================================================
# Tests per le voci
# ============================================================


class TestLineItemCreate:
    """Tests per WorkItemCreate / MaterialItemCreate."""

    def test_defaults_when_absent(self):
        """Test qty assente vale 1, unit_price assente vale 0."""
        item = WorkItemCreate(name="Diagnosi")
        assert item.qty == Decimal("1")
        assert item.unit_price == Decimal("0")
        assert item.model_fields_set == {"name"}

    def test_price_alias(self):
        """Test 'price' è accettato come alias di unit_price."""
        item = WorkItemCreate.model_validate({"name": "Cambio olio", "price": "2500"})
        assert item.unit_price == Decimal("2500")

    def test_name_is_stripped(self):
        """Test il nome viene normalizzato."""
        assert WorkItemCreate(name="  Freni  ").name == "Freni"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_rejected(self, name):
        """Test nome vuoto rifiutato."""
        with pytest.raises(ValidationError):
            WorkItemCreate(name=name)

    @pytest.mark.parametrize("qty", ["0", "-1", "0.0004"])
    def test_invalid_qty(self, qty):
        """Test qty nulla, negativa o nulla dopo l'arrotondamento rifiutata."""
        with pytest.raises(ValidationError):
            WorkItemCreate.model_validate({"name": "Voce", "qty": qty})

    def test_fractional_qty_kept(self):
        """Test quantità con tre decimali conservata (0.125 litri)."""
        item = MaterialItemCreate.model_validate({"name": "Olio", "qty": "0.125"})
        assert item.qty == Decimal("0.125")

    def test_price_rounded_to_cent(self):
        """Test prezzo con più di due decimali arrotondato ROUND_HALF_UP."""
        item = WorkItemCreate.model_validate({"name": "Voce", "unit_price": "10.005"})
        assert item.unit_price == Decimal("10.01")

    def test_float_price_accepted(self):
        """Test prezzo float con rumore binario accettato e arrotondato."""
        item = WorkItemCreate.model_validate({"name": "Voce", "unit_price": 0.1 + 0.2})
        assert item.unit_price == Decimal("0.30")

    def test_large_values_accepted(self):
        """Test nessun limite sul numero di cifre."""
        item = WorkItemCreate.model_validate({"name": "Voce", "qty": "12345678.5", "unit_price": "1234567890.12"})
        assert item.qty == Decimal("12345678.500")

    def test_negative_price_rejected(self):
        """Test prezzo negativo rifiutato."""
        with pytest.raises(ValidationError):
            MaterialItemCreate.model_validate({"name": "Olio", "unit_price": "-0.01"})

    def test_explicit_null_qty_rejected(self):
        """Test qty null esplicito non equivale ad assente."""
        with pytest.raises(ValidationError):
            WorkItemCreate.model_validate({"name": "Voce", "qty": None})

    @pytest.mark.parametrize("value", ["NaN", "Infinity", float("inf")])
    def test_non_finite_rejected(self, value):
        """Test valori non finiti rifiutati."""
        with pytest.raises(ValidationError):
            WorkItemCreate.model_validate({"name": "Voce", "unit_price": value})

    def test_material_id_explicit_null(self):
        """Test material_id null esplicito accettato e distinto da assente."""
        item = MaterialItemCreate.model_validate({"name": "Olio", "material_id": None})
        assert item.material_id is None
        assert "material_id" in item.model_fields_set

        absent = MaterialItemCreate.model_validate({"name": "Olio"})
        assert "material_id" not in absent.model_fields_set


# ============================================================
# Tests per pagamenti e ordini
# ============================================================


class TestPaymentCreate:
    """Tests per PaymentCreate."""

    def test_default_method_cash(self):
        """Test metodo assente vale 'cash'."""
        assert PaymentCreate(amount=Decimal("10")).method is PaymentMethod.CASH

    def test_float_amount_rounded(self):
        """Test importo float (0.1 + 0.2) accettato e arrotondato al centesimo."""
        payment = PaymentCreate.model_validate({"amount": 0.30000000000000004})
        assert payment.amount == Decimal("0.30")

    def test_three_decimal_amount_rounded(self):
        """Test importo con tre decimali arrotondato ROUND_HALF_UP."""
        assert PaymentCreate.model_validate({"amount": "19.995"}).amount == Decimal("20.00")

    @pytest.mark.parametrize("amount", ["0", "-5", "0.004"])
    def test_non_positive_amount_rejected(self, amount):
        """Test importo non positivo, anche dopo l'arrotondamento, rifiutato."""
        with pytest.raises(ValidationError):
            PaymentCreate.model_validate({"amount": amount})

    def test_unknown_method_rejected(self):
        """Test metodo di pagamento sconosciuto rifiutato."""
        with pytest.raises(ValidationError):
            PaymentCreate.model_validate({"amount": "10", "method": "bitcoin"})


class TestWorkOrderSchemas:
    """Tests per gli schemi dell'ordine di lavoro."""

    def test_blank_description_is_none(self):
        """Test descrizione vuota equivale ad assente."""
        assert WorkOrderCreate(booking_id=42, description="   ").description is None

    def test_booking_id_must_be_positive(self):
        """Test booking_id non positivo rifiutato."""
        with pytest.raises(ValidationError):
            WorkOrderCreate(booking_id=0)

    def test_read_debt_and_json_money(self):
        """Test debt calcolato e importi serializzati come numeri."""
        now = datetime.datetime(2026, 3, 2, 10, 0)
        work_order = WorkOrderRead(
            id=1,
            booking_id=42,
            client_id=1,
            car_id=7,
            description=None,
            status="in_progress",
            total_amount=Decimal("5700.00"),
            paid_amount=Decimal("1200.50"),
            created_at=now,
            updated_at=now,
        )
        data = work_order.model_dump(mode="json")
        assert data["total_amount"] == 5700.0
        assert data["paid_amount"] == 1200.5
        assert data["debt"] == 4499.5
        assert data["status"] == "in_progress"

    def test_list_total_pages(self):
        """Test calcolo del numero di pagine."""
        assert WorkOrderList(items=[], total=41, page=1, per_page=20).total_pages == 3
        assert WorkOrderList(items=[], total=0, page=1, per_page=20).total_pages == 0
