"""Failures a scan can end with.

Extractors never raise for a missing value; these exceptions are the only
ways a scan stops without producing a record.
"""


class ScanError(Exception):
    """Base class for scan pipeline failures."""


class OcrUnavailable(ScanError):
    """The OCR backend is not configured or cannot be reached."""


class OcrFailure(ScanError):
    """The OCR backend was invoked but failed to recognize the document."""


class ExtractionIncomplete(ScanError):
    """Mandatory fields are still absent after merging user overrides.

    Args:
        missing_fields: Names of the absent fields, in record order.
    """

    def __init__(self, missing_fields: list[str]) -> None:
        self.missing_fields = list(missing_fields)
        super().__init__(
            "Could not determine mandatory fields: " + ", ".join(self.missing_fields)
        )
