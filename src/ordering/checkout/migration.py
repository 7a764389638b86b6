"""One-time upgrade of exported legacy checkout documents.

Legacy documents use camelCase keys, may keep their lines under
``checkoutSchema`` instead of ``items``, record the gateway name beside the
payment details as ``paymentGateway`` and the finalization time as
``isFinalizedAt``. ``upgrade_legacy_checkout`` turns one such document into
the keyword arguments of a ``Checkout``; ``import_legacy_checkouts`` stores
a batch of them.

Legacy lines are imported as they are, even when incomplete: finalization
reports missing fields instead of the import silently dropping lines.
"""

import json
from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.checkout.checkout import Checkout, CheckoutItem, PaymentMethod, PaymentStatus
from ordering.checkout.normalization import normalize_payment_details
from ordering.errors import InvalidCheckoutData, StorefrontError
from ordering.shared.value_objects import ShippingAddress

logger = structlog.get_logger(__name__)


def _get(document, *keys):
    for key in keys:
        if document.get(key) is not None:
            return document[key]
    return None


def _object_id(value):
    # Extended JSON exports wrap ids as {"$oid": "..."}
    if isinstance(value, dict):
        value = value.get("$oid")
    return str(value) if value else None


def _timestamp(value):
    if isinstance(value, dict):
        value = value.get("$date")
    if value in (None, ""):
        return None
    if isinstance(value, int | float):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    if isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _upgrade_line(line):
    quantity = _get(line, "quantity")
    price = _get(line, "price", "unitPrice", "unit_price")
    return {
        "product_id": _object_id(_get(line, "productId", "product_id", "product")),
        "name": _get(line, "name") or "",
        "image": _get(line, "image") or "",
        "unit_price": float(price) if price is not None else None,
        "quantity": int(quantity) if quantity is not None else None,
        "size": _get(line, "size") or None,
        "color": _get(line, "color") or None,
    }


def upgrade_legacy_checkout(document) -> dict:
    """Return ``Checkout`` keyword arguments for one legacy document.

    Lines are read from ``items`` when present, else from ``checkoutSchema``.
    """
    user_id = _object_id(_get(document, "user", "userId", "user_id"))
    if not user_id:
        raise InvalidCheckoutData("Legacy checkout has no user", {"id": _object_id(document.get("_id"))})

    lines = document.get("items")
    if not lines:
        lines = document.get("checkoutSchema") or []

    address = _get(document, "shippingAddress", "shipping_address") or {}
    created_at = _timestamp(_get(document, "createdAt", "created_at")) or datetime.now(UTC)
    updated_at = _timestamp(_get(document, "updatedAt", "updated_at")) or created_at

    is_paid = bool(_get(document, "isPaid", "is_paid"))
    paid_at = _timestamp(_get(document, "paidAt", "paid_at"))
    if is_paid and paid_at is None:
        paid_at = updated_at

    payment_status = str(_get(document, "paymentStatus", "payment_status") or "").lower()
    if payment_status not in {status.value for status in PaymentStatus}:
        payment_status = PaymentStatus.PAID.value if is_paid else PaymentStatus.PENDING.value
    if is_paid:
        payment_status = PaymentStatus.PAID.value

    raw_details = _get(document, "paymentDetails", "payment_details")
    gateway = _get(document, "paymentGateway", "payment_gateway")
    if gateway and isinstance(raw_details, dict) and not raw_details.get("gateway"):
        raw_details = {**raw_details, "gateway": gateway}
    elif gateway and not raw_details:
        raw_details = {"gateway": gateway}

    is_finalized = bool(_get(document, "isFinalized", "is_finalized"))
    finalized_at = _timestamp(_get(document, "isFinalizedAt", "finalizedAt", "finalized_at"))
    if is_finalized and finalized_at is None:
        finalized_at = updated_at

    record = {
        "user_id": user_id,
        "items": [_upgrade_line(line) for line in lines],
        "shipping_address": {
            "address": _get(address, "address") or "",
            "city": _get(address, "city") or "",
            "postal_code": _get(address, "postalCode", "postal_code") or "",
            "country": _get(address, "country") or "",
        },
        "payment_method": PaymentMethod.parse(_get(document, "paymentMethod", "payment_method")).value,
        "total_price": float(_get(document, "totalPrice", "total_price") or 0.0),
        "is_paid": is_paid,
        "paid_at": paid_at,
        "payment_status": payment_status,
        "payment_details": normalize_payment_details(raw_details),
        "is_finalized": is_finalized,
        "finalized_at": finalized_at,
        "created_at": created_at,
        "updated_at": updated_at,
    }

    legacy_id = _object_id(document.get("_id") or document.get("id"))
    if legacy_id:
        record["id"] = legacy_id
    return record


def build_checkout(record) -> Checkout:
    address = record["shipping_address"]
    return Checkout(
        **{
            **record,
            "items": [CheckoutItem(**line) for line in record["items"]],
            "shipping_address": ShippingAddress(**address) if all(address.values()) else None,
        }
    )


def import_legacy_checkouts(documents) -> tuple[int, int]:
    """Upgrade and store legacy documents. Returns ``(imported, skipped)``.

    Documents that cannot be upgraded, and ids that already exist, are
    skipped and logged.
    """
    repo = current_domain.repository_for(Checkout)
    imported = skipped = 0

    for document in documents:
        try:
            record = upgrade_legacy_checkout(document)
            if "id" in record and _exists(repo, record["id"]):
                logger.info("Legacy checkout already imported", checkout_id=record["id"])
                skipped += 1
                continue
            repo.add(build_checkout(record))
            imported += 1
        except (StorefrontError, ValidationError, ValueError) as exc:
            logger.warning(
                "Legacy checkout skipped",
                legacy_id=_object_id(document.get("_id")),
                error=str(exc),
            )
            skipped += 1

    logger.info("Legacy checkouts imported", imported=imported, skipped=skipped)
    return imported, skipped


def _exists(repo, checkout_id) -> bool:
    try:
        repo.get(checkout_id)
    except ObjectNotFoundError:
        return False
    return True


def load_legacy_export(path) -> list[dict]:
    """Read a JSON export: either a list of documents or one document per line."""
    with open(path) as handle:
        content = handle.read().strip()
    if not content:
        return []
    if content.startswith("["):
        return json.loads(content)
    return [json.loads(line) for line in content.splitlines() if line.strip()]
