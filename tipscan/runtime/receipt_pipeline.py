"""Runtime helpers for the receipt OCR pipeline (non-HTTP)."""

import json
import time
from pathlib import Path
from typing import Any

import httpx

from tipscan.domain.scan import TextObservation
from tipscan.receipt.ocr_helpers import resize_image_bytes, transform_paddleocr_result
from tipscan.runtime.logging import get_logger
from tipscan.runtime.paths import get_paths

logger = get_logger(__name__)

DEFAULT_OCR_URL = "http://localhost:8001"
OCR_TIMEOUT_SECONDS = 60.0


class OCRServiceUnavailable(RuntimeError):
    """Raised when the OCR service cannot be reached or returns an error."""


def post_image_to_ocr(image_bytes: bytes, filename: str, ocr_url: str) -> dict[str, Any]:
    """Send already-read image bytes to the OCR service and return its raw JSON."""
    ocr_url = ocr_url.rstrip("/")
    logger.info("Sending receipt to OCR service at %s...", ocr_url)

    try:
        resized_bytes = resize_image_bytes(image_bytes)

        start_time = time.time()
        response = httpx.post(
            f"{ocr_url}/ocr",
            files={"file": (filename, resized_bytes, "image/jpeg")},
            timeout=OCR_TIMEOUT_SECONDS,
        )
        logger.info("OCR service returned in %.2f seconds", time.time() - start_time)
    except httpx.RequestError as e:
        logger.error("Failed to connect to OCR service: %s", e)
        raise OCRServiceUnavailable(f"Failed to connect to OCR service: {e}") from e

    if response.status_code != 200:
        # Response body may echo receipt text; log only the status.
        logger.error("OCR service error: %s", response.status_code)
        raise OCRServiceUnavailable(f"OCR service error: {response.status_code}")

    return response.json()


def call_ocr_service(receipt_path: Path, ocr_url: str) -> tuple[dict[str, Any], list[TextObservation]]:
    """
    Call the OCR service for an image file.

    Returns:
        Tuple of (raw_result, observations).

    Raises:
        FileNotFoundError: If the image does not exist
        OCRServiceUnavailable: If the service is unreachable or errors
    """
    if not receipt_path.exists():
        raise FileNotFoundError(f"Receipt image not found: {receipt_path}")

    raw_result = post_image_to_ocr(receipt_path.read_bytes(), receipt_path.name, ocr_url)
    observations = transform_paddleocr_result(raw_result)
    logger.debug("OCR produced %d observations", len(observations))
    return raw_result, observations


def save_ocr_json(ocr_result: dict[str, Any], receipt_path: Path) -> Path:
    """Save raw OCR result JSON for debugging."""
    ocr_json_dir = get_paths().receipts_ocr_json
    ocr_json_dir.mkdir(parents=True, exist_ok=True)
    ocr_json_path = ocr_json_dir / f"{receipt_path.stem}.json"
    ocr_json_path.write_text(json.dumps(ocr_result, indent=2))
    logger.debug("OCR JSON saved to: %s", ocr_json_path)
    return ocr_json_path


def create_debug_overlay(
    image_path: Path,
    observations: list[TextObservation],
    output_path: Path | None = None,
) -> Path:
    """
    Draw observation boxes over the original receipt photo.

    Boxes are normalized, so they are scaled to the EXIF-transposed image.
    Green is high confidence, yellow medium, red low.
    """
    from PIL import Image, ImageDraw, ImageOps

    img = ImageOps.exif_transpose(Image.open(image_path)).convert("RGB")
    img_width, img_height = img.size
    draw = ImageDraw.Draw(img)
    line_width = max(2, int(img_width / 500))

    for i, obs in enumerate(observations):
        box = obs.bounding_box
        if box is None:
            continue
        if obs.confidence > 0.9:
            color = (0, 255, 0)
        elif obs.confidence > 0.7:
            color = (255, 255, 0)
        else:
            color = (255, 0, 0)

        left = box.x * img_width
        top = box.y * img_height
        right = (box.x + box.width) * img_width
        bottom = (box.y + box.height) * img_height
        draw.rectangle((left, top, right, bottom), outline=color, width=line_width)
        draw.text((left, max(0, top - 14)), f"{i}: {obs.text[:30]}", fill=(0, 0, 0))

    if output_path is None:
        output_path = image_path.parent / f"{image_path.stem}_debug.png"

    img.save(output_path)
    logger.info("Debug overlay saved to: %s", output_path)
    return output_path
