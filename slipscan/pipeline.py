"""Scan reconciliation pipeline.

One scan: recognize the document text, run the field extractors, merge
the result with whatever the user already supplied, and check that the
mandatory fields are present. The reconciled record is returned to the
caller, who owns persisting it.

Scans share no mutable state, so :meth:`ScanReconciliationPipeline.submit`
can run many of them at once on the pipeline's thread pool.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date
from pathlib import Path

from slipscan.errors import ExtractionIncomplete, OcrFailure, OcrUnavailable
from slipscan.extraction.engine import FieldExtractor
from slipscan.extraction.merge import field_sources, merge
from slipscan.ocr.base import TextRecognizer
from slipscan.records import PartialBillingRecord, ReconciledBillingRecord
from slipscan.utils.config import AppConfig
from slipscan.utils.logger import get_logger
from slipscan.validation.rules_engine import RecordValidator

logger = get_logger(__name__)


class ScanReconciliationPipeline:
    """Turns slip images into reconciled billing records.

    Args:
        recognizer: OCR collaborator.
        extractor: Field extraction engine. Defaults to default limits.
        validator: Record validator. Defaults to the standard mandatory
            fields.
        max_workers: Size of the thread pool used by :meth:`submit`.
    """

    def __init__(
        self,
        recognizer: TextRecognizer,
        extractor: FieldExtractor | None = None,
        validator: RecordValidator | None = None,
        max_workers: int = 4,
    ) -> None:
        self.recognizer = recognizer
        self.extractor = extractor or FieldExtractor()
        self.validator = validator or RecordValidator()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="slip-scan"
        )

    @classmethod
    def from_config(
        cls, config: AppConfig, recognizer: TextRecognizer | None = None
    ) -> "ScanReconciliationPipeline":
        """Build a pipeline from application configuration.

        Args:
            config: Loaded application configuration.
            recognizer: OCR collaborator; a Tesseract recognizer built from
                ``config`` is used when omitted.
        """
        if recognizer is None:
            from slipscan.ocr.tesseract_engine import TesseractRecognizer

            recognizer = TesseractRecognizer(config.ocr, config.preprocessing)

        return cls(
            recognizer=recognizer,
            extractor=FieldExtractor(config.extraction),
            validator=RecordValidator(
                required_fields=config.pipeline.required_fields,
                max_amount=config.extraction.max_amount,
                payee_fallback=config.extraction.payee_fallback,
            ),
            max_workers=config.pipeline.max_workers,
        )

    def run(
        self,
        document: bytes | Path,
        user_partial: PartialBillingRecord | None = None,
        today: date | None = None,
    ) -> ReconciledBillingRecord:
        """Scan one document synchronously.

        Args:
            document: Document image or PDF contents, or a path to read
                them from.
            user_partial: Values supplied by the user; they override
                anything extracted.
            today: Reference date for due date plausibility.

        Returns:
            The reconciled record, with all mandatory fields present.

        Raises:
            OcrUnavailable: If the OCR backend cannot be used.
            OcrFailure: If recognition failed.
            ExtractionIncomplete: If mandatory fields are still missing
                after merging user values.
        """
        if isinstance(document, Path):
            document = self._read(document)
        text = self._recognize(document)
        logger.info("OCR finished, %d characters recognized", len(text))

        extraction = self.extractor.extract(text, today=today)
        record = merge(user_partial, extraction.record)

        sources = field_sources(user_partial, extraction.record)
        logger.info(
            "Merged fields: %s",
            ", ".join(f"{name}={source}" for name, source in sources.items()),
        )

        report = self.validator.validate(record)
        for warning in report.warnings:
            logger.warning("Scan warning: %s", warning)

        if report.missing_fields:
            logger.warning(
                "Scan incomplete, missing: %s", ", ".join(report.missing_fields)
            )
            raise ExtractionIncomplete(report.missing_fields)

        return record

    def submit(
        self,
        document: bytes | Path,
        user_partial: PartialBillingRecord | None = None,
        today: date | None = None,
    ) -> Future[ReconciledBillingRecord]:
        """Schedule a scan on the thread pool.

        Failures surface through ``Future.exception()`` / ``Future.result()``
        unchanged. There is no retry. A path is read on the worker thread.
        """
        return self._executor.submit(self.run, document, user_partial, today)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "ScanReconciliationPipeline":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def _read(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as exc:
            logger.error("Could not read %s: %s", path, exc)
            raise OcrFailure(f"Could not read document: {exc}") from exc

    def _recognize(self, image_bytes: bytes) -> str:
        try:
            text = self.recognizer.recognize_text(image_bytes)
        except (OcrUnavailable, OcrFailure):
            raise
        except Exception as exc:
            logger.error("OCR backend raised an unexpected error: %s", exc)
            raise OcrFailure(f"OCR failed: {exc}") from exc
        return text or ""
