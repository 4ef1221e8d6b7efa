import logging
import re

from .errors import ClientInputError, DependencyFailure
from .models import CheckScanResponse, ScanCountResponse
from .storage import CodeStore

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")

REDEEMED_MESSAGE = "✅ Offer redeemed successfully for {code}"
ALREADY_REDEEMED_MESSAGE = "❌ Offer already redeemed."


def normalize_identifier(raw: str) -> str:
    """Keep only ASCII letters and digits, in order."""
    return _NON_ALNUM.sub("", raw)


def require_identifier(code, message: str) -> str:
    if isinstance(code, int) and not isinstance(code, bool):
        code = str(code)
    if not isinstance(code, str) or not code:
        raise ClientInputError(message)
    identifier = normalize_identifier(code)
    if not identifier:
        raise ClientInputError(message)
    return identifier


def check_scan(store: CodeStore, identifier: str) -> CheckScanResponse:
    """
    Record one scan attempt for ``identifier``.

    The first scan redeems the offer; every later scan reports it as already
    redeemed. The counter tracks attempts, so it grows on both outcomes.
    """
    try:
        previous, count = store.record_scan_with_previous(identifier)
    except OSError as e:
        raise DependencyFailure("Failed to scan QR code.") from e

    if previous == 0:
        message = REDEEMED_MESSAGE.format(code=identifier)
    else:
        message = ALREADY_REDEEMED_MESSAGE

    logger.info("Scan of %s: count=%d redeemed_now=%s", identifier, count, previous == 0)
    return CheckScanResponse(message=message, scanCount=count)


def scan_status(store: CodeStore, identifier: str) -> ScanCountResponse:
    count = store.get(identifier)
    return ScanCountResponse(code=identifier, scanCount=count, redeemed=count >= 1)
