"""Pure OCR transformation helpers: image preparation and observation building."""

import io
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from tipscan.domain.scan import BoundingBox, TextObservation

logger = logging.getLogger(__name__)

MAX_IMAGE_DIMENSION = 3000  # Resize if either dimension exceeds this
OCR_IMAGE_PADDING = 50  # White padding around image to prevent edge truncation
MIN_DETECTION_CONFIDENCE = 0.5
MIN_TEXT_LENGTH = 1


def resize_image_bytes(
    image_bytes: bytes, max_dimension: int = MAX_IMAGE_DIMENSION, padding: int = OCR_IMAGE_PADDING
) -> bytes:
    """
    Prepare a receipt photo for OCR.

    The image is EXIF-transposed, shrunk so neither side exceeds
    ``max_dimension``, and framed with white padding so summary lines at the
    very bottom of the photo are not truncated.

    Returns:
        Image bytes (JPEG format)
    """
    from PIL import Image, ImageOps

    img = Image.open(io.BytesIO(image_bytes))
    img = ImageOps.exif_transpose(img)

    width, height = img.size
    if width > max_dimension or height > max_dimension:
        scale = max_dimension / max(width, height)
        img = img.resize((int(width * scale), int(height * scale)), Image.Resampling.LANCZOS)

    if padding > 0:
        img = ImageOps.expand(img, border=padding, fill="white")

    buffer = io.BytesIO()
    img.convert("RGB").save(buffer, format="JPEG", quality=95)
    return buffer.getvalue()


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def transform_paddleocr_result(
    raw_result: Mapping[str, Any],
    padding: int = OCR_IMAGE_PADDING,
    min_confidence: float = MIN_DETECTION_CONFIDENCE,
) -> list[TextObservation]:
    """
    Convert a raw PaddleOCR response into normalized text observations.

    The OCR service reports pixel coordinates of the padded image; the
    padding offset is removed and boxes are scaled to 0-1 of the original.

    Args:
        raw_result: ``{"image_width", "image_height", "detections": [[bbox, [text, conf]], ...]}``
        padding: Padding added by ``resize_image_bytes``
        min_confidence: Detections below this are dropped

    Returns:
        Observations in detection order (grouping happens in the resolver)
    """
    image_width = raw_result["image_width"] - 2 * padding
    image_height = raw_result["image_height"] - 2 * padding
    if image_width <= 0 or image_height <= 0:
        logger.debug("OCR result has no usable image area: %sx%s", image_width, image_height)
        return []

    observations: list[TextObservation] = []
    for detection in raw_result.get("detections", []):
        bbox, (text, confidence) = detection
        if confidence < min_confidence:
            continue
        if len(text.strip()) < MIN_TEXT_LENGTH:
            continue

        # bbox is [[x1,y1], [x2,y2], [x3,y3], [x4,y4]]
        x_coords = [point[0] - padding for point in bbox]
        y_coords = [point[1] - padding for point in bbox]
        x_min = _clamp(min(x_coords) / image_width)
        y_min = _clamp(min(y_coords) / image_height)
        x_max = _clamp(max(x_coords) / image_width)
        y_max = _clamp(max(y_coords) / image_height)

        observations.append(
            TextObservation(
                text=text.strip(),
                bounding_box=BoundingBox(x=x_min, y=y_min, width=x_max - x_min, height=y_max - y_min),
                confidence=float(confidence),
            )
        )
    return observations


def _bounding_box_from_payload(data: Any) -> BoundingBox | None:
    if not isinstance(data, Mapping):
        return None
    try:
        return BoundingBox(
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data["width"]),
            height=float(data["height"]),
        )
    except (KeyError, TypeError, ValueError):
        return None


def observations_from_payload(payload: Mapping[str, Any]) -> list[TextObservation]:
    """
    Build observations from a JSON frame payload.

    Accepted shapes:
        {"observations": [{"text": "...", "confidence": 0.9,
                           "bounding_box": {"x", "y", "width", "height"}}]}
        {"lines": ["SUBTOTAL $90.00", "TOTAL $101.70"]}

    Malformed entries are skipped.
    """
    observations: list[TextObservation] = []

    for entry in payload.get("observations") or []:
        if not isinstance(entry, Mapping) or not isinstance(entry.get("text"), str):
            logger.debug("Skipping malformed observation: %r", entry)
            continue
        try:
            confidence = float(entry.get("confidence", 1.0))
        except (TypeError, ValueError):
            confidence = 1.0
        observations.append(
            TextObservation(
                text=entry["text"],
                bounding_box=_bounding_box_from_payload(entry.get("bounding_box")),
                confidence=confidence,
            )
        )

    observations.extend(observations_from_lines(line for line in payload.get("lines") or [] if isinstance(line, str)))
    return observations


def observations_from_lines(lines: Iterable[str]) -> list[TextObservation]:
    """One observation per non-blank line of plain text."""
    return [TextObservation(text=line.strip()) for line in lines if line.strip()]


def observations_to_payload(observations: Iterable[TextObservation]) -> dict[str, Any]:
    """Inverse of ``observations_from_payload`` for the observation shape."""
    entries: list[dict[str, Any]] = []
    for obs in observations:
        entry: dict[str, Any] = {"text": obs.text, "confidence": obs.confidence}
        if obs.bounding_box is not None:
            box = obs.bounding_box
            entry["bounding_box"] = {"x": box.x, "y": box.y, "width": box.width, "height": box.height}
        entries.append(entry)
    return {"observations": entries}
