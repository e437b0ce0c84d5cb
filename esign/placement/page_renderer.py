"""Compose a captured preview image onto a single PDF page."""

import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

from esign.core.config import MAX_CAPTURE_PIXELS, PDF_RENDER_DPI
from esign.core.exceptions import ValidationError
from esign.placement.coordinates import PageFit, Size

logger = logging.getLogger(__name__)

MM_PER_INCH = 25.4


def _mm_to_px(value_mm: float, dpi: int) -> int:
    return int(round(value_mm / MM_PER_INCH * dpi))


def _check_pixel_count(size: tuple[int, int]) -> None:
    width, height = size
    if width * height > MAX_CAPTURE_PIXELS:
        raise ValidationError(
            message=f"Capture exceeds {MAX_CAPTURE_PIXELS} pixels",
            field="capture",
            details={"width": width, "height": height},
        )


def open_capture(image_bytes: bytes) -> Image.Image:
    """Decode a captured PNG/JPEG and normalise it to RGB.

    Raises:
        ValidationError: If the bytes are not a readable image or the
            image has too many pixels
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))
        _check_pixel_count(image.size)
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ValidationError(
            message="Capture is not a readable image",
            field="capture",
            details={"detail": str(e)},
        ) from e

    image = ImageOps.exif_transpose(image)
    if image.mode == "RGBA":
        background = Image.new("RGB", image.size, "white")
        background.paste(image, mask=image.split()[-1])
        return background
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    return image


def render_page_pdf(
    capture: Image.Image,
    fit: PageFit,
    page: Size,
    dpi: int = PDF_RENDER_DPI,
) -> bytes:
    """Place the capture on a white page at the fitted offset and size.

    Args:
        capture: Decoded capture image
        fit: Placement of the capture on the page, in millimetres
        page: Page size in millimetres
        dpi: Raster resolution of the generated page

    Returns:
        Bytes of a one-page PDF whose physical size equals ``page``
    """
    page_px = (_mm_to_px(page.width, dpi), _mm_to_px(page.height, dpi))
    target_px = (
        max(1, _mm_to_px(fit.rendered_width, dpi)),
        max(1, _mm_to_px(fit.rendered_height, dpi)),
    )
    offset_px = (_mm_to_px(fit.offset_x, dpi), _mm_to_px(fit.offset_y, dpi))

    sheet = Image.new("RGB", page_px, "white")
    resized = capture.convert("RGB").resize(target_px, Image.Resampling.LANCZOS)
    sheet.paste(resized, offset_px)

    buffer = io.BytesIO()
    sheet.save(buffer, format="PDF", resolution=float(dpi))
    logger.debug(
        "Rendered page %sx%spx with capture at %s size %s", *page_px, offset_px, target_px
    )
    return buffer.getvalue()
