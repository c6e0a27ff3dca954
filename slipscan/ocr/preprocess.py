"""Image cleanup applied to slip photos before OCR.

Phone photos of slips are small, tilted and unevenly lit. The steps here
(upscale, denoise, deskew, binarize) mostly help Tesseract keep the long
digit groups of the digitable line intact.
"""

import cv2
import numpy as np

from slipscan.utils.config import PreprocessingConfig
from slipscan.utils.logger import get_logger

logger = get_logger(__name__)

# Lines steeper than this are table borders or noise, not text baselines.
_MAX_BASELINE_ANGLE = 30.0


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an RGB or RGBA array to grayscale; gray input is returned as is."""
    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)


def upscale(image: np.ndarray, min_width: int) -> np.ndarray:
    """Enlarge images narrower than ``min_width``, keeping the aspect ratio."""
    height, width = image.shape[:2]
    if width == 0 or width >= min_width:
        return image
    factor = min_width / width
    logger.debug("Upscaling %dx%d image by %.2f", width, height, factor)
    return cv2.resize(
        image,
        (min_width, int(round(height * factor))),
        interpolation=cv2.INTER_CUBIC,
    )


def denoise(image: np.ndarray, method: str = "bilateral") -> np.ndarray:
    """Reduce sensor noise while keeping character edges.

    Raises:
        ValueError: If ``method`` is not ``bilateral`` or ``gaussian``.
    """
    if method == "bilateral":
        return cv2.bilateralFilter(image, 9, 75, 75)
    if method == "gaussian":
        return cv2.GaussianBlur(image, (3, 3), 0)
    raise ValueError(f"Unsupported denoise method: {method}")


def detect_skew_angle(gray: np.ndarray) -> float:
    """Estimate page rotation from near-horizontal line segments.

    Returns:
        Median baseline angle in degrees, 0.0 when no lines are found.
    """
    edges = cv2.Canny(gray, 50, 150, apertureSize=3)
    lines = cv2.HoughLinesP(edges, 1, np.pi / 180, 100, minLineLength=100, maxLineGap=10)
    if lines is None:
        return 0.0

    # HoughLinesP returns (N, 1, 4) on OpenCV 4 and (N, 4) on OpenCV 5.
    segments = lines.reshape(-1, 4)
    angles = [
        angle
        for angle in (
            float(np.degrees(np.arctan2(y2 - y1, x2 - x1))) for x1, y1, x2, y2 in segments
        )
        if abs(angle) <= _MAX_BASELINE_ANGLE
    ]
    if not angles:
        return 0.0
    return float(np.median(angles))


def deskew(gray: np.ndarray, min_angle: float = 0.5) -> np.ndarray:
    """Rotate the image so text baselines are horizontal."""
    angle = detect_skew_angle(gray)
    if abs(angle) < min_angle:
        return gray

    height, width = gray.shape[:2]
    matrix = cv2.getRotationMatrix2D((width // 2, height // 2), angle, 1.0)
    logger.debug("Deskewing by %.2f degrees", angle)
    return cv2.warpAffine(
        gray,
        matrix,
        (width, height),
        flags=cv2.INTER_CUBIC,
        borderMode=cv2.BORDER_REPLICATE,
    )


def binarize(gray: np.ndarray, method: str = "otsu") -> np.ndarray:
    """Threshold to black text on white background.

    Raises:
        ValueError: If ``method`` is not ``otsu`` or ``adaptive``.
    """
    if method == "otsu":
        _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        return binary
    if method == "adaptive":
        return cv2.adaptiveThreshold(
            gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 31, 10
        )
    raise ValueError(f"Unsupported binarize method: {method}")


class ImagePreprocessor:
    """Applies the configured cleanup steps to a slip image.

    Args:
        config: Switches and parameters for each step.
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        self.config = config

    def process(self, image: np.ndarray) -> np.ndarray:
        """Return a grayscale (or binary) image ready for OCR."""
        result = to_gray(image)
        if not self.config.enabled:
            return result

        result = upscale(result, self.config.upscale_min_width)
        if self.config.denoise_enabled:
            result = denoise(result, self.config.denoise_method)
        if self.config.deskew_enabled:
            result = deskew(result)
        if self.config.binarize_enabled:
            result = binarize(result, self.config.binarize_method)

        logger.debug("Preprocessed image to %dx%d", result.shape[1], result.shape[0])
        return result
