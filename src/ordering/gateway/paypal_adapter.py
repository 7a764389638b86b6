"""PayPal payment verifier.

Looks the relayed order up with the PayPal Orders API
(``GET /v2/checkout/orders/{id}``) using a client-credentials token, and
confirms only a ``COMPLETED`` order whose amount and currency match what the
checkout is about to record.
"""

import httpx
import structlog

from ordering.gateway.port import PaymentVerifier, VerificationResult

logger = structlog.get_logger(__name__)

SANDBOX_API_BASE = "https://api-m.sandbox.paypal.com"

# Amounts are compared to the cent
AMOUNT_TOLERANCE = 0.005


class PayPalVerifier(PaymentVerifier):
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        api_base: str = SANDBOX_API_BASE,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.api_base = api_base.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def _access_token(self) -> str:
        response = self._client.post(
            f"{self.api_base}/v1/oauth2/token",
            auth=(self.client_id, self.client_secret),
            data={"grant_type": "client_credentials"},
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        return response.json()["access_token"]

    def _fetch_order(self, order_id: str) -> dict | None:
        response = self._client.get(
            f"{self.api_base}/v2/checkout/orders/{order_id}",
            headers={"Authorization": f"Bearer {self._access_token()}", "Accept": "application/json"},
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        return response.json()

    def verify_payment(
        self,
        transaction_id: str | None,
        amount: float | None,
        currency: str | None,
    ) -> VerificationResult:
        if not transaction_id:
            return VerificationResult(confirmed=False, failure_reason="No transaction id to verify")

        # Network and 5xx errors propagate: the gateway was not asked, not refused
        order = self._fetch_order(transaction_id)
        if order is None:
            return VerificationResult(
                confirmed=False,
                gateway_status="NOT_FOUND",
                failure_reason="Transaction not found at gateway",
            )

        status = order.get("status")
        if status != "COMPLETED":
            return VerificationResult(
                confirmed=False,
                gateway_status=status,
                failure_reason=f"Gateway reports order as {status}",
            )

        units = [unit.get("amount") or {} for unit in order.get("purchase_units") or []]
        captured = sum(float(unit.get("value") or 0) for unit in units)
        captured_currency = next((unit.get("currency_code") for unit in units if unit.get("currency_code")), None)

        if amount is not None and abs(captured - amount) > AMOUNT_TOLERANCE:
            logger.warning("PayPal amount mismatch", order_id=transaction_id, expected=amount, captured=captured)
            return VerificationResult(
                confirmed=False,
                gateway_status=status,
                failure_reason="Captured amount does not match the checkout",
            )
        if currency and captured_currency and currency.upper() != captured_currency.upper():
            return VerificationResult(
                confirmed=False,
                gateway_status=status,
                failure_reason="Captured currency does not match the checkout",
            )

        return VerificationResult(confirmed=True, gateway_status=status)
