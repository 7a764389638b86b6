"""Normalize whatever a payment gateway relayed into ``PaymentDetails``.

Clients forward gateway results in several shapes: our own camelCase keys
(``transactionId``, ``paymentGateway``), snake_case keys, or a PayPal order
capture (``id``, ``status``, ``purchase_units[0].amount``). All of them are
reduced to the same canonical value object; the original payload is kept in
``raw_response``.
"""

import json

from ordering.errors import InvalidPaymentStatus
from ordering.shared.value_objects import PaymentDetails


def _first(payload, *keys):
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return None


def _amount_and_currency(payload):
    amount = _first(payload, "amount")
    currency = _first(payload, "currency", "currency_code", "currencyCode")

    if isinstance(amount, dict):
        currency = currency or _first(amount, "currency_code", "currencyCode", "currency")
        amount = _first(amount, "value")

    if amount is None:
        units = payload.get("purchase_units") or payload.get("purchaseUnits") or []
        if units and isinstance(units[0], dict) and isinstance(units[0].get("amount"), dict):
            unit_amount = units[0]["amount"]
            amount = _first(unit_amount, "value")
            currency = currency or _first(unit_amount, "currency_code", "currencyCode")

    if amount is not None:
        try:
            amount = float(amount)
        except (TypeError, ValueError) as exc:
            raise InvalidPaymentStatus(
                "Payment amount is not a number",
                {"amount": amount},
            ) from exc

    return amount, currency


def normalize_payment_details(payload) -> PaymentDetails | None:
    """Return canonical payment details, or None when nothing was relayed."""
    if payload is None:
        return None
    if isinstance(payload, str):
        try:
            payload = json.loads(payload) if payload.strip() else {}
        except json.JSONDecodeError as exc:
            raise InvalidPaymentStatus("Payment details are not valid JSON") from exc
    if not isinstance(payload, dict):
        raise InvalidPaymentStatus("Payment details must be an object")
    if not payload:
        return None

    gateway = _first(payload, "gateway", "paymentGateway", "payment_gateway")
    if gateway is None and ("purchase_units" in payload or "purchaseUnits" in payload):
        gateway = "PayPal"

    amount, currency = _amount_and_currency(payload)
    status = _first(payload, "status", "paymentStatus", "payment_status")

    transaction_id = _first(payload, "transactionId", "transaction_id", "id")

    return PaymentDetails(
        transaction_id=str(transaction_id) if transaction_id is not None else None,
        gateway=str(gateway) if gateway is not None else None,
        amount=amount,
        currency=str(currency).upper() if currency else None,
        status=str(status).upper() if status else None,
        raw_response=json.dumps(payload, default=str),
    )
