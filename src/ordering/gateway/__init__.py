"""Payment verifier factory.

get_verifier() / set_verifier() swap the implementation used when a
checkout's payment is confirmed:
- FakeVerifier for development and testing
- PayPalVerifier in production, or wherever PAYMENT_VERIFIER=paypal

configure_verifier() builds the verifier from the environment once at
startup so that missing PayPal credentials fail the boot, not a payment.
"""

import os
from collections.abc import Mapping

from ordering.gateway.fake_adapter import FakeVerifier
from ordering.gateway.paypal_adapter import SANDBOX_API_BASE, PayPalVerifier
from ordering.gateway.port import PaymentVerifier

_current_verifier: PaymentVerifier | None = None


def build_verifier(env: Mapping[str, str] | None = None) -> PaymentVerifier:
    """Choose a verifier from ``PAYMENT_VERIFIER`` (``fake`` or ``paypal``).

    When unset, production gets PayPal and every other environment the fake.
    """
    env = os.environ if env is None else env
    default = "paypal" if env.get("PROTEAN_ENV", "").lower() == "production" else "fake"
    kind = (env.get("PAYMENT_VERIFIER") or default).lower()

    if kind == "fake":
        return FakeVerifier()
    if kind == "paypal":
        client_id = env.get("PAYPAL_CLIENT_ID")
        client_secret = env.get("PAYPAL_CLIENT_SECRET")
        if not client_id or not client_secret:
            raise ValueError("PAYPAL_CLIENT_ID and PAYPAL_CLIENT_SECRET must be set to verify PayPal payments")
        return PayPalVerifier(client_id, client_secret, api_base=env.get("PAYPAL_API_BASE") or SANDBOX_API_BASE)
    raise ValueError(f"Unknown PAYMENT_VERIFIER {kind!r}; expected 'fake' or 'paypal'")


def configure_verifier(env: Mapping[str, str] | None = None) -> PaymentVerifier:
    verifier = build_verifier(env)
    set_verifier(verifier)
    return verifier


def get_verifier() -> PaymentVerifier:
    """Return the current payment verifier, building it from the environment on first use."""
    global _current_verifier
    if _current_verifier is None:
        _current_verifier = build_verifier()
    return _current_verifier


def set_verifier(verifier: PaymentVerifier) -> None:
    """Override the active payment verifier (useful for tests)."""
    global _current_verifier
    _current_verifier = verifier


def reset_verifier() -> None:
    global _current_verifier
    _current_verifier = None
