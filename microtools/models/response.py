"""
Response models for the MicroTools API.

This module defines Pydantic models for JSON response formatting.
"""

from typing import Any

from pydantic import BaseModel, Field


class YoutubeInfoResponse(BaseModel):
    """Video title, thumbnail and direct stream links per quality."""

    title: str | None = None
    thumbnail: str | None = None
    links: dict[str, str | None] = Field(..., description="Quality label to stream URL")


class DownloadResponse(BaseModel):
    """Direct media URL resolved by a download proxy."""

    success: bool = True
    url: str


class QRCodeResponse(BaseModel):
    """Generated QR code as a PNG data URL."""

    success: bool = True
    qr: str


class CreateOrderResponse(BaseModel):
    """Outcome of a payment order creation."""

    success: bool
    order: dict[str, Any] | None = None
    error: str | None = None


class VerifyPaymentResponse(BaseModel):
    """Outcome of a payment signature check."""

    verified: bool


class ErrorResponse(BaseModel):
    """
    Response model for error responses.

    This model provides consistent error response formatting.
    """

    error: str
