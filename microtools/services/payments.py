"""
Razorpay order creation and checkout signature verification.
"""

import hashlib
import hmac
import uuid
from typing import Any

import requests
from loguru import logger

from microtools.config import Settings
from microtools.exceptions import PaymentsNotConfiguredError, UpstreamError


def create_order(amount: int, settings: Settings) -> dict[str, Any]:
    """
    Create a payment order.

    Args:
        amount: Amount in minor currency units
        settings: Application settings carrying the gateway credentials

    Returns:
        The order object returned by the gateway

    Raises:
        PaymentsNotConfiguredError: If credentials are missing; no request is made
        UpstreamError: If the gateway call fails
    """
    if not settings.payments_configured:
        raise PaymentsNotConfiguredError()

    payload = {
        "amount": amount,
        "currency": settings.RAZORPAY_CURRENCY,
        "receipt": f"rcpt_{uuid.uuid4().hex[:16]}",
    }

    try:
        response = requests.post(
            f"{settings.RAZORPAY_API_URL.rstrip('/')}/orders",
            json=payload,
            auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET),
            timeout=settings.UPSTREAM_TIMEOUT,
        )
        response.raise_for_status()
    except requests.HTTPError as exc:
        raise UpstreamError("razorpay", UpstreamError.HTTP_STATUS, str(exc)) from exc
    except requests.RequestException as exc:
        raise UpstreamError("razorpay", UpstreamError.NETWORK, str(exc)) from exc

    try:
        order = response.json()
    except ValueError as exc:
        raise UpstreamError("razorpay", UpstreamError.MALFORMED_RESPONSE, "body is not JSON") from exc
    if not isinstance(order, dict):
        raise UpstreamError("razorpay", UpstreamError.MALFORMED_RESPONSE, "order is not an object")

    logger.info(f"Created order {order.get('id')} for {amount} {settings.RAZORPAY_CURRENCY}")
    return order


def expected_signature(order_id: str, payment_id: str, secret: str) -> str:
    """HMAC-SHA256 hex digest of ``order_id|payment_id``."""
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_signature(order_id: str, payment_id: str, signature: str, secret: str | None) -> bool:
    """
    Check a checkout signature.

    The comparison is exact and constant-time; any difference, including
    case or surrounding whitespace, fails. Never raises.

    Args:
        order_id: Gateway order id
        payment_id: Gateway payment id
        signature: Signature returned to the client by the checkout
        secret: Gateway key secret

    Returns:
        True only if the signature matches
    """
    if not secret:
        logger.warning("Signature verification requested without a configured secret")
        return False
    expected = expected_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected.encode(), signature.encode("utf-8", errors="replace"))
