import base64
import hashlib
import hmac

from fastapi import Header, HTTPException, Request, status

from config import settings
from constants import WEBHOOK_SIGNATURE_HEADER


def compute_signature(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def is_valid_signature(body: bytes, signature: str, secret: str) -> bool:
    if not signature or not secret:
        return False
    return hmac.compare_digest(compute_signature(body, secret), signature.strip())


async def verify_webhook_signature(
    request: Request,
    signature: str | None = Header(default=None, alias=WEBHOOK_SIGNATURE_HEADER),
) -> None:
    if not signature:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing webhook signature"
        )
    body = await request.body()
    if not is_valid_signature(body, signature, settings.webhook_secret):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook signature"
        )
