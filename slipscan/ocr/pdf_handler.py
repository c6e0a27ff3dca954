"""PDF rasterization for slips delivered as PDF files.

Bank-issued slips are often PDFs; every page is rendered to an RGB array
so it can go through the same preprocessing and OCR as a photo.
"""

import numpy as np
from pdf2image import convert_from_bytes
from pdf2image.exceptions import PDFInfoNotInstalledError

from slipscan.errors import OcrFailure, OcrUnavailable
from slipscan.utils.logger import get_logger

logger = get_logger(__name__)

PDF_MAGIC = b"%PDF"


def is_pdf(data: bytes) -> bool:
    return data[:4] == PDF_MAGIC


class PDFHandler:
    """Converts PDF bytes to page images.

    Args:
        dpi: Rendering resolution. Digitable lines need at least 200 DPI
            to keep their digits apart.
    """

    def __init__(self, dpi: int = 300) -> None:
        self.dpi = dpi

    def pdf_to_images(self, pdf_bytes: bytes) -> list[np.ndarray]:
        """Render every page of a PDF.

        Args:
            pdf_bytes: Raw PDF file contents.

        Returns:
            One RGB numpy array per page.

        Raises:
            OcrUnavailable: If poppler is not installed.
            OcrFailure: If the PDF cannot be rendered.
        """
        try:
            pil_images = convert_from_bytes(pdf_bytes, dpi=self.dpi)
        except PDFInfoNotInstalledError as exc:
            logger.error("Poppler is not installed, cannot render PDF slips")
            raise OcrUnavailable("Poppler is required to read PDF documents") from exc
        except Exception as exc:
            logger.error("PDF conversion failed: %s", exc)
            raise OcrFailure(f"PDF conversion failed: {exc}") from exc

        images = [np.array(img.convert("RGB")) for img in pil_images]
        logger.info("Converted PDF to %d images at %d DPI", len(images), self.dpi)
        return images
