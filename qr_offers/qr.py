import base64
import io
import logging
from typing import List

import qrcode

from .errors import DependencyFailure
from .logic import normalize_identifier
from .models import QrImage
from .storage import CodeStore

logger = logging.getLogger(__name__)


def build_scan_url(base_url: str, identifier: str) -> str:
    return f"{base_url.rstrip('/')}/scan-qr?code={identifier}"


def qr_data_url(text: str) -> str:
    img = qrcode.make(text)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    b64 = base64.b64encode(buf.getvalue()).decode("utf-8")
    return f"data:image/png;base64,{b64}"


def generate_codes(store: CodeStore, base_url: str, phone_numbers: List[str]) -> List[QrImage]:
    """
    Build one QR image per phone number, pointing at the scan endpoint.

    Generating never increments a scan count; unseen identifiers are created at 0
    and the store is flushed once for the whole batch. Any encoding failure
    fails the batch.
    """
    identifiers = [normalize_identifier(number) for number in phone_numbers]

    try:
        store.ensure_many(i for i in identifiers if i)
    except OSError as e:
        raise DependencyFailure("Failed to generate QR codes.") from e

    images: List[QrImage] = []
    for number, identifier in zip(phone_numbers, identifiers):
        scan_url = build_scan_url(base_url, identifier)
        try:
            data_url = qr_data_url(scan_url)
        except Exception as e:
            raise DependencyFailure("Failed to generate QR codes.") from e
        images.append(QrImage(phone=number, qrCode=data_url, scanUrl=scan_url))

    logger.info("Generated %d QR codes", len(images))
    return images
