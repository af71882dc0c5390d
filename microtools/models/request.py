"""
Request models for the MicroTools API.

This module defines Pydantic models for JSON request bodies. Multipart
endpoints take their fields as ``Form`` parameters instead.
"""

from pydantic import BaseModel, Field, field_validator


class UrlRequest(BaseModel):
    """Body for the YouTube lookup and the media download proxies."""

    url: str = Field(..., description="Public URL of the post or video")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Strip surrounding whitespace and reject blanks."""
        v = v.strip()
        if not v:
            raise ValueError("url must not be empty")
        return v


class QRCodeRequest(BaseModel):
    """Body for QR code generation."""

    text: str = Field(..., min_length=1, description="Text to encode")


class CreateOrderRequest(BaseModel):
    """Body for payment order creation."""

    amount: int = Field(..., gt=0, description="Amount in minor currency units")


class VerifyPaymentRequest(BaseModel):
    """Body for payment signature verification."""

    order_id: str = Field(..., description="Gateway order identifier")
    payment_id: str = Field(..., description="Gateway payment identifier")
    signature: str = Field(..., description="Hex HMAC-SHA256 signature from the checkout")
