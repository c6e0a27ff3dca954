"""Tesseract-backed text recognition for slip images and PDFs.

Implements the :class:`~slipscan.ocr.base.TextRecognizer` interface: bytes
in, plain text out, with backend problems reported as ``OcrUnavailable``
and per-document problems as ``OcrFailure``.
"""

import io

import numpy as np
import pytesseract
from PIL import Image, UnidentifiedImageError

from slipscan.errors import OcrFailure, OcrUnavailable
from slipscan.utils.config import OCRConfig, PreprocessingConfig
from slipscan.utils.logger import get_logger

from .pdf_handler import PDFHandler, is_pdf
from .preprocess import ImagePreprocessor

logger = get_logger(__name__)


class TesseractRecognizer:
    """OCR collaborator for the scan pipeline.

    Args:
        config: Tesseract settings (binary path, language, page
            segmentation mode, PDF rendering DPI).
        preprocessing: Image cleanup settings applied to every page.
    """

    def __init__(
        self,
        config: OCRConfig | None = None,
        preprocessing: PreprocessingConfig | None = None,
    ) -> None:
        self.config = config or OCRConfig()
        if self.config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.config.tesseract_cmd
        self.preprocessor = ImagePreprocessor(preprocessing or PreprocessingConfig())
        self.pdf_handler = PDFHandler(dpi=self.config.pdf_dpi)

    def is_available(self) -> bool:
        """Whether the Tesseract binary can be found."""
        try:
            pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError:
            return False
        return True

    def recognize_text(self, image_bytes: bytes) -> str:
        """Recognize the text of a slip image or PDF.

        Args:
            image_bytes: PNG/JPEG/TIFF or PDF file contents.

        Returns:
            Recognized text, pages separated by a newline. May be empty.

        Raises:
            OcrUnavailable: If Tesseract (or poppler, for PDFs) is missing.
            OcrFailure: If the document cannot be decoded or recognized.
        """
        if not image_bytes:
            raise OcrFailure("Empty document")

        pages = self._load_pages(image_bytes)
        text = "\n".join(self._recognize_page(page) for page in pages).strip()

        if not text:
            logger.warning("OCR could not find any text in the document")
        else:
            logger.info(
                "OCR extracted %d characters from %d page(s)", len(text), len(pages)
            )
        return text

    def _load_pages(self, data: bytes) -> list[np.ndarray]:
        if is_pdf(data):
            return self.pdf_handler.pdf_to_images(data)

        try:
            with Image.open(io.BytesIO(data)) as img:
                return [np.array(img.convert("RGB"))]
        except (UnidentifiedImageError, OSError) as exc:
            logger.error("Could not decode document image: %s", exc)
            raise OcrFailure(f"Unsupported or corrupt image: {exc}") from exc

    def _recognize_page(self, image: np.ndarray) -> str:
        processed = self.preprocessor.process(image)
        try:
            return pytesseract.image_to_string(
                Image.fromarray(processed),
                lang=self.config.default_lang,
                config=f"--psm {self.config.psm}",
            )
        except pytesseract.TesseractNotFoundError as exc:
            logger.error("Tesseract binary not found")
            raise OcrUnavailable("Tesseract is not installed or not on PATH") from exc
        except pytesseract.TesseractError as exc:
            logger.error("Tesseract failed: %s", exc)
            raise OcrFailure(f"Tesseract failed: {exc}") from exc
