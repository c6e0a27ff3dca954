"""Payment slip scan reconciliation.

Turns noisy OCR text from a photographed or scanned payment slip into a
structured billing record (amount, due date, payee, reference code),
letting user-supplied values override anything the extractors find.
"""

__version__ = "0.1.0"
