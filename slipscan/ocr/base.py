"""Interface the pipeline expects from a text recognition backend."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TextRecognizer(Protocol):
    """Turns document bytes into plain text.

    Implementations raise :class:`slipscan.errors.OcrUnavailable` when the
    backend cannot be used at all and :class:`slipscan.errors.OcrFailure`
    when recognition of a given document fails. An empty string is a valid
    result meaning no text was found.
    """

    def recognize_text(self, image_bytes: bytes) -> str: ...
