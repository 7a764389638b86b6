"""Payment verifier port.

Before a checkout is marked paid, the transaction the client relayed is
checked with the gateway that issued it. Adapters implement this contract
so that the confirmation handler never knows which gateway is behind it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of asking the gateway about a transaction."""

    confirmed: bool
    gateway_status: str | None = None
    failure_reason: str | None = None


class PaymentVerifier(ABC):
    @abstractmethod
    def verify_payment(
        self,
        transaction_id: str | None,
        amount: float | None,
        currency: str | None,
    ) -> VerificationResult:
        """Confirm that the gateway captured ``amount`` for ``transaction_id``."""
        ...
