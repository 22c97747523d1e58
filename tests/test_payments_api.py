"""Tests for the payments router."""

from datetime import date
from decimal import Decimal


def payment_payload(contract_id, **overrides):
    payload = {
        "contract_id": contract_id,
        "payment_date": "2025-06-25",
        "amount_total": "210.00",
        "principal_amount": "195.00",
        "late_fee_amount": "15.00",
        "received_by": "GT_REAL_BANK",
        "channel": "ZELLE",
    }
    payload.update(overrides)
    return payload


class TestCreatePayment:
    """POST /payments"""

    def test_copies_property_id(self, client, make_contract) -> None:
        contract = make_contract()
        res = client.post("/payments", json=payment_payload(contract.id))
        assert res.status_code == 201
        assert res.json()["property_id"] == "#33"
        assert res.json()["late_fee_amount"] == 15.0

    def test_split_within_a_cent(self, client, make_contract) -> None:
        contract = make_contract()
        res = client.post("/payments", json=payment_payload(contract.id, amount_total="210.01"))
        assert res.status_code == 201

    def test_split_mismatch(self, client, make_contract) -> None:
        contract = make_contract()
        res = client.post("/payments", json=payment_payload(contract.id, amount_total="220.00"))
        assert res.status_code == 400

    def test_unknown_contract(self, client) -> None:
        assert client.post("/payments", json=payment_payload(999)).status_code == 404


class TestSuggestSplit:
    """GET /payments/suggest-split"""

    def test_excess_is_late_fee(self, client) -> None:
        res = client.get("/payments/suggest-split",
                         params={"amount_total": "210", "installment_amount": "195"})
        assert res.json() == {"principal_amount": 195.0, "late_fee_amount": 15.0}

    def test_short_payment_is_all_principal(self, client) -> None:
        res = client.get("/payments/suggest-split",
                         params={"amount_total": "100", "installment_amount": "195"})
        assert res.json() == {"principal_amount": 100.0, "late_fee_amount": 0.0}


class TestQueries:
    """Payment listings."""

    def test_by_year(self, client, make_contract, make_payment) -> None:
        contract = make_contract()
        make_payment(contract, payment_date=date(2024, 12, 25))
        make_payment(contract, payment_date=date(2025, 1, 25))

        res = client.get("/payments/by-year/2025")
        assert [p["payment_date"] for p in res.json()] == ["2025-01-25"]

    def test_by_contract(self, client, make_contract, make_payment) -> None:
        first = make_contract(property_id="#1")
        second = make_contract(property_id="#2")
        make_payment(first)
        make_payment(second)

        res = client.get(f"/payments/by-contract/{second.id}")
        assert [p["property_id"] for p in res.json()] == ["#2"]


class TestUpdatePayment:
    """PUT /payments/{id}"""

    def test_tracked_change_requires_reason(self, client, make_contract, make_payment) -> None:
        payment = make_payment(make_contract())
        res = client.put(f"/payments/{payment.id}", json={"payment_date": "2025-05-26"})
        assert res.status_code == 400

    def test_tracked_change_is_logged(self, client, make_contract, make_payment) -> None:
        payment = make_payment(make_contract())
        res = client.put(
            f"/payments/{payment.id}",
            json={"payment_date": "2025-05-26", "changed_by": "office", "reason": "bank statement"},
        )
        assert res.status_code == 200

        log = client.get(f"/payments/{payment.id}/audit-log").json()
        assert [(e["field"], e["old_value"], e["new_value"]) for e in log] == [
            ("payment_date", "2025-05-25", "2025-05-26")
        ]

    def test_null_for_required_field(self, client, make_contract, make_payment) -> None:
        payment = make_payment(make_contract())
        res = client.put(
            f"/payments/{payment.id}",
            json={"payment_date": None, "changed_by": "office", "reason": "fix"},
        )
        assert res.status_code == 422
        assert client.get(f"/payments/by-contract/{payment.contract_id}").json()[0]["payment_date"] == "2025-05-25"

    def test_update_keeps_split_valid(self, client, make_contract, make_payment) -> None:
        payment = make_payment(make_contract(), amount_total=Decimal("195.00"))
        res = client.put(f"/payments/{payment.id}", json={"late_fee_amount": "10.00"})
        assert res.status_code == 400

    def test_memo_needs_no_reason(self, client, make_contract, make_payment) -> None:
        payment = make_payment(make_contract())
        res = client.put(f"/payments/{payment.id}", json={"memo": "June installment"})
        assert res.status_code == 200
        assert client.get(f"/payments/{payment.id}/audit-log").json() == []
