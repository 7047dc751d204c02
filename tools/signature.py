import hashlib
import hmac
from typing import Optional

SIGNATURE_HEADER = "x-cal-signature-256"

def compute_signature(secret: str, body: bytes) -> str:
    """Lowercase hex HMAC-SHA256 of the raw request body."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()

def verify_signature(secret: str, body: bytes, signature: Optional[str]) -> bool:
    """
    Check a Cal.com webhook signature.

    Args:
        secret: Shared webhook signing secret
        body: Exact bytes received
        signature: Value of the signature header, if any

    Returns:
        True only when the header is present and matches the computed digest
    """
    if not signature:
        return False

    expected = compute_signature(secret, body)
    return hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8"))
