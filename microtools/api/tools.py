"""
Image utility endpoints: background removal, watermark blur, resize, QR codes.
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from loguru import logger
from PIL import Image
from qrcode.exceptions import DataOverflowError

from microtools.api.deps import get_temp_storage
from microtools.api.responses import buffer_response, json_error, stream_file, text_error
from microtools.config import Settings, get_settings
from microtools.exceptions import ClientInputError, UpstreamError
from microtools.models.request import QRCodeRequest
from microtools.models.response import ErrorResponse, QRCodeResponse
from microtools.services.images import blur_image, parse_dimension, resize_image
from microtools.services.proxies import remove_background
from microtools.services.qr import make_qr_data_url
from microtools.services.uploads import ingest_upload, require_uploads
from microtools.utils.fs import TempStorage

router = APIRouter()

_IMAGE_ERRORS = (OSError, ValueError, Image.DecompressionBombError)


@router.post("/remove-bg")
async def remove_bg(
    image: UploadFile | None = File(None),
    settings: Settings = Depends(get_settings),
    storage: TempStorage = Depends(get_temp_storage),
):
    """Relay an image to remove.bg and return the cut-out PNG."""
    with storage.scope() as scope:
        try:
            upload = require_uploads(image, "Upload an image")[0]
            artifact = await ingest_upload(upload, scope, settings.MAX_FILE_SIZE)
        except ClientInputError as exc:
            return text_error(exc.status_code, str(exc))
        except OSError as exc:
            logger.error(f"Image upload could not be stored: {exc}")
            return text_error(500, "Background removal failed")

        try:
            data = await run_in_threadpool(
                remove_background,
                artifact.temp_path,
                artifact.original_name,
                settings.REMOVE_BG_URL,
                settings.REMOVE_BG_KEY,
                settings.UPSTREAM_TIMEOUT,
            )
        except UpstreamError as exc:
            logger.error(f"{exc} {exc.details.get('detail', '')}")
            return text_error(502, "Background removal failed")

        return buffer_response(data, "image/png")


@router.post("/watermark")
async def watermark(
    image: UploadFile | None = File(None),
    settings: Settings = Depends(get_settings),
    storage: TempStorage = Depends(get_temp_storage),
):
    """Blur the image as a rough watermark remover and send it as a PNG download."""
    with storage.scope() as scope:
        try:
            upload = require_uploads(image, "Upload an image")[0]
            artifact = await ingest_upload(upload, scope, settings.MAX_FILE_SIZE)
        except ClientInputError as exc:
            return text_error(exc.status_code, str(exc))
        except OSError as exc:
            logger.error(f"Image upload could not be stored: {exc}")
            return text_error(500, "Failed to remove watermark")

        output = scope.allocate("wm", ".png")
        try:
            await run_in_threadpool(blur_image, artifact.temp_path, output)
        except _IMAGE_ERRORS as exc:
            logger.error(f"Watermark blur failed: {exc}")
            return text_error(500, "Failed to remove watermark")

        return stream_file(output, "image/png", f"{artifact.base_name}-clean.png", scope)


@router.post("/resize")
async def resize(
    image: UploadFile | None = File(None),
    width: str | None = Form(None),
    height: str | None = Form(None),
    settings: Settings = Depends(get_settings),
    storage: TempStorage = Depends(get_temp_storage),
):
    """Resize an image to the requested box and return it as PNG."""
    with storage.scope() as scope:
        try:
            upload = require_uploads(image, "Upload an image")[0]
            target_width = parse_dimension(width, "width", settings.MAX_RESIZE_DIMENSION)
            target_height = parse_dimension(height, "height", settings.MAX_RESIZE_DIMENSION)
            if target_width is None and target_height is None:
                return text_error(400, "width or height is required")
            artifact = await ingest_upload(upload, scope, settings.MAX_FILE_SIZE)
        except ClientInputError as exc:
            return text_error(exc.status_code, str(exc))
        except OSError as exc:
            logger.error(f"Image upload could not be stored: {exc}")
            return text_error(500, "Resize failed")

        try:
            data = await run_in_threadpool(resize_image, artifact.temp_path, target_width, target_height)
        except _IMAGE_ERRORS as exc:
            logger.error(f"Resize failed: {exc}")
            return text_error(500, "Resize failed")

        return buffer_response(data, "image/png")


@router.post(
    "/qrcode",
    response_model=QRCodeResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def qr_code(body: QRCodeRequest):
    """Encode text as a QR code PNG data URL."""
    try:
        return QRCodeResponse(qr=make_qr_data_url(body.text))
    except DataOverflowError:
        return json_error(400, "Text is too long for a QR code")
    except (OSError, ValueError) as exc:
        logger.error(f"QR generation failed: {exc}")
        return json_error(500, "QR generation failed")
