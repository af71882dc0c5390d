"""
Payment endpoints backed by Razorpay.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from loguru import logger

from microtools.config import Settings, get_settings
from microtools.exceptions import PaymentsNotConfiguredError, UpstreamError
from microtools.models.request import CreateOrderRequest, VerifyPaymentRequest
from microtools.models.response import CreateOrderResponse, VerifyPaymentResponse
from microtools.services.payments import create_order, verify_signature

router = APIRouter()


@router.post("/create-order", response_model=CreateOrderResponse, response_model_exclude_none=True)
def create_payment_order(body: CreateOrderRequest, settings: Settings = Depends(get_settings)):
    """Create a gateway order for ``amount`` minor currency units."""
    try:
        order = create_order(body.amount, settings)
    except PaymentsNotConfiguredError as exc:
        logger.warning("Order requested but Razorpay credentials are not configured")
        return JSONResponse(status_code=503, content={"success": False, "error": str(exc)})
    except UpstreamError as exc:
        logger.error(f"{exc}: {exc.details.get('detail', '')}")
        return JSONResponse(status_code=502, content={"success": False, "error": "Order creation failed"})

    return CreateOrderResponse(success=True, order=order)


@router.post("/verify-payment", response_model=VerifyPaymentResponse)
def verify_payment(body: VerifyPaymentRequest, settings: Settings = Depends(get_settings)):
    """Check the checkout signature for an order/payment pair."""
    verified = verify_signature(body.order_id, body.payment_id, body.signature, settings.RAZORPAY_KEY_SECRET)
    if not verified:
        logger.info(f"Signature mismatch for order {body.order_id}")
    return VerifyPaymentResponse(verified=verified)
