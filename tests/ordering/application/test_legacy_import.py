"""Application tests for importing legacy checkout exports."""

import json

import pytest
from ordering.checkout.checkout import Checkout
from ordering.checkout.finalization import FinalizeCheckout
from ordering.checkout.migration import import_legacy_checkouts, load_legacy_export
from ordering.errors import InvalidLineItem
from protean import current_domain


def _document(legacy_id, **overrides):
    document = {
        "_id": legacy_id,
        "user": "user-001",
        "checkoutSchema": [{"productId": "prod-hat", "name": "Wool Hat", "price": 10, "quantity": 1}],
        "shippingAddress": {"address": "1 Main St", "city": "Springfield", "postalCode": "62701", "country": "US"},
        "paymentMethod": "Paypal",
        "totalPrice": 10,
        "isPaid": True,
        "paidAt": "2024-03-01T10:00:00Z",
        "paymentStatus": "paid",
        "createdAt": "2024-03-01T09:55:00Z",
    }
    document.update(overrides)
    return document


class TestImportLegacyCheckouts:
    def test_imports_and_skips(self):
        imported, skipped = import_legacy_checkouts(
            [
                _document("legacy-1"),
                _document("legacy-2", paymentMethod="Carrier Pigeon"),
                _document("legacy-3", user=None),
            ]
        )

        assert (imported, skipped) == (1, 2)
        checkout = current_domain.repository_for(Checkout).get("legacy-1")
        assert checkout.is_paid is True
        assert checkout.items[0].unit_price == 10.0

    def test_reimport_is_skipped(self):
        import_legacy_checkouts([_document("legacy-1")])
        assert import_legacy_checkouts([_document("legacy-1")]) == (0, 1)

    def test_imported_incomplete_checkout_cannot_finalize(self, catalogue):
        import_legacy_checkouts([_document("legacy-4", checkoutSchema=[{"productId": "prod-hat", "quantity": 1}])])

        with pytest.raises(InvalidLineItem):
            current_domain.process(FinalizeCheckout(checkout_id="legacy-4", user_id="user-001"), asynchronous=False)

    def test_imported_paid_checkout_finalizes(self, catalogue):
        import_legacy_checkouts([_document("legacy-5")])

        result = current_domain.process(
            FinalizeCheckout(checkout_id="legacy-5", user_id="user-001"), asynchronous=False
        )
        assert result["total_price"] == 10.0


class TestLoadLegacyExport:
    def test_json_array(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text(json.dumps([_document("a"), _document("b")]))
        assert [d["_id"] for d in load_legacy_export(path)] == ["a", "b"]

    def test_json_lines(self, tmp_path):
        path = tmp_path / "export.jsonl"
        path.write_text("\n".join(json.dumps(_document(i)) for i in ("a", "b")) + "\n")
        assert len(load_legacy_export(path)) == 2
