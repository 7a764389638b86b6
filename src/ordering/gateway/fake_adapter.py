"""Configurable fake payment verifier for development and testing.

No external calls are made. Tests flip ``should_confirm`` to simulate a
gateway that does not recognise the relayed transaction, and inspect
``calls`` to see what was asked.
"""

from ordering.gateway.port import PaymentVerifier, VerificationResult


class FakeVerifier(PaymentVerifier):
    def __init__(self) -> None:
        self.should_confirm: bool = True
        self.failure_reason: str = "Transaction not found at gateway"
        self.calls: list[dict] = []

    def configure(self, should_confirm: bool, failure_reason: str = "Transaction not found at gateway") -> None:
        self.should_confirm = should_confirm
        self.failure_reason = failure_reason

    def verify_payment(
        self,
        transaction_id: str | None,
        amount: float | None,
        currency: str | None,
    ) -> VerificationResult:
        self.calls.append(
            {
                "method": "verify_payment",
                "transaction_id": transaction_id,
                "amount": amount,
                "currency": currency,
            }
        )

        if self.should_confirm:
            return VerificationResult(confirmed=True, gateway_status="COMPLETED")
        return VerificationResult(
            confirmed=False,
            gateway_status="NOT_FOUND",
            failure_reason=self.failure_reason,
        )
