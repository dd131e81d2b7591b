import hmac
import hashlib
import logging
import time
from typing import Callable, Optional

from fastapi import Header, HTTPException, Request

from .config import get_settings

logger = logging.getLogger(__name__)

SIGNATURE_VERSION = "v0"
MAX_REQUEST_AGE_SECONDS = 60 * 5


class SlackVerificationError(HTTPException):
    status_code = 400
    message = "Slack request verification failed"

    def __init__(self) -> None:
        super().__init__(status_code=self.status_code, detail=self.message)


class SigningSecretNotSet(SlackVerificationError):
    status_code = 500
    message = "SLACK_SIGNING_SECRET is not set"


class MissingSlackHeaders(SlackVerificationError):
    status_code = 400
    message = "Missing Slack signature or timestamp headers"


class InvalidSlackTimestamp(SlackVerificationError):
    status_code = 400
    message = "Invalid Slack request timestamp"


class StaleSlackTimestamp(SlackVerificationError):
    status_code = 400
    message = "Request timestamp is too old"


class InvalidSlackSignature(SlackVerificationError):
    status_code = 401
    message = "Invalid Slack signature"


def _as_bytes(body: bytes | str) -> bytes:
    return body.encode("utf-8") if isinstance(body, str) else body


def _base_string(timestamp: str, body: bytes | str) -> bytes:
    # must be the raw body exactly as sent; re-serialized JSON will not match
    return f"{SIGNATURE_VERSION}:{timestamp}:".encode("utf-8") + _as_bytes(body)


def compute_slack_signature(secret: str, timestamp: str | int, body: bytes | str) -> str:
    """
    Build the x-slack-signature value Slack would send for this body:
    "v0=" + hex(HMAC-SHA256(secret, "v0:<timestamp>:<body>")).
    """
    digest = hmac.new(
        key=secret.encode("utf-8"),
        msg=_base_string(str(timestamp), body),
        digestmod=hashlib.sha256,
    ).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def _decode_signature(signature: str) -> bytes:
    prefix = f"{SIGNATURE_VERSION}="
    if not signature.startswith(prefix):
        raise InvalidSlackSignature()
    try:
        return bytes.fromhex(signature[len(prefix):])
    except ValueError:
        raise InvalidSlackSignature()


def verify_slack_request(
    *,
    secret: Optional[str],
    signature: Optional[str],
    timestamp: Optional[str],
    body: bytes | str,
    now: Optional[float] = None,
    max_age_seconds: int = MAX_REQUEST_AGE_SECONDS,
) -> None:
    """
    Check a request against Slack's v0 signing protocol.

    Steps run in a fixed order and the first failure raises:
    secret present, both headers present, timestamp within
    max_age_seconds of now (either direction), then the HMAC of the
    base string compared in constant time against the signature header.
    Returns None when the request is genuine.
    """
    if not secret:
        raise SigningSecretNotSet()

    if not signature or not timestamp:
        raise MissingSlackHeaders()

    try:
        sent_at = int(timestamp, 10)
    except ValueError:
        raise InvalidSlackTimestamp()

    current = int(time.time() if now is None else now)
    if abs(current - sent_at) > max_age_seconds:
        raise StaleSlackTimestamp()

    expected = hmac.new(
        key=secret.encode("utf-8"),
        msg=_base_string(timestamp, body),
        digestmod=hashlib.sha256,
    ).digest()
    provided = _decode_signature(signature)

    # timing-safe compare
    if not hmac.compare_digest(expected, provided):
        raise InvalidSlackSignature()


def signature_dependency(
    secret_provider: Optional[Callable[[], Optional[str]]] = None,
    clock: Callable[[], float] = time.time,
):
    """
    Build a FastAPI dependency that verifies the request and hands the
    raw body to the route. Use it on individual routes when the app does
    not install SlackSignatureMiddleware.
    """

    async def _verify(
        request: Request,
        x_slack_signature: str | None = Header(default=None, alias="X-Slack-Signature"),
        x_slack_request_timestamp: str | None = Header(default=None, alias="X-Slack-Request-Timestamp"),
    ) -> bytes:
        settings = get_settings()
        secret = secret_provider() if secret_provider else settings.SLACK_SIGNING_SECRET

        raw_body = await request.body()

        try:
            verify_slack_request(
                secret=secret,
                signature=x_slack_signature,
                timestamp=x_slack_request_timestamp,
                body=raw_body,
                now=clock(),
                max_age_seconds=settings.SLACK_REQUEST_MAX_AGE_SECONDS,
            )
        except SlackVerificationError as exc:
            logger.warning("Rejected Slack request path=%s status=%s reason=%s",
                           request.url.path, exc.status_code, exc.detail)
            raise

        return raw_body

    return _verify


verify_slack_signature = signature_dependency()
