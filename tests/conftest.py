"""Shared test fixtures for the slip scanning test suite."""

import io
from datetime import date
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

# 47 digit line whose three field check digits are valid.
DIGITABLE_LINE = "23790.50400 41990.123451 67890.123457 1 95310000012345"
DIGITABLE_DIGITS = "23790504004199012345167890123457195310000012345"

SLIP_TEXT = """BANCO EXEMPLO S.A. | 237-2 | 23790.50400 41990.123451 67890.123457 1 95310000012345
Local de Pagamento
PAGÁVEL EM QUALQUER BANCO ATÉ O VENCIMENTO
Vencimento
15/02/2026
Beneficiário
ACME SERVIÇOS LTDA - CNPJ 12.345.678/0001-90
Agência/Código do Beneficiário
1234/0012345-6
Data do Documento
02/01/2026
(=) Valor do Documento
R$ 1.234,56
(-) Desconto / Abatimento
Pagador
JOÃO DA SILVA
"""


@pytest.fixture
def today() -> date:
    """Fixed reference date used for due date plausibility."""
    return date(2026, 1, 10)


@pytest.fixture
def slip_text() -> str:
    """OCR output of a typical bank payment slip."""
    return SLIP_TEXT


@pytest.fixture
def digitable_line() -> str:
    return DIGITABLE_LINE


@pytest.fixture
def digitable_digits() -> str:
    return DIGITABLE_DIGITS


@pytest.fixture
def sample_image() -> np.ndarray:
    """Synthetic RGB image with a white block on black."""
    image = np.zeros((200, 300, 3), dtype=np.uint8)
    image[50:150, 50:250] = (255, 255, 255)
    return image


@pytest.fixture
def png_bytes(sample_image: np.ndarray) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(sample_image).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
