import logging
import time
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from .config import get_settings
from .security import SlackVerificationError, verify_slack_request

logger = logging.getLogger(__name__)


class SlackSignatureMiddleware(BaseHTTPMiddleware):
    """
    Rejects requests under the configured path prefix unless they carry a
    valid Slack signature. Failures short-circuit with a text/plain body
    equal to the error message; verified requests reach the route with
    the raw body still readable.
    """

    def __init__(
        self,
        app,
        secret_provider: Optional[Callable[[], Optional[str]]] = None,
        clock: Callable[[], float] = time.time,
        path_prefix: Optional[str] = None,
    ):
        super().__init__(app)
        self.secret_provider = secret_provider
        self.clock = clock
        self.path_prefix = path_prefix

    def _applies_to(self, path: str, prefix: str) -> bool:
        if not prefix:
            return True
        prefix = prefix.rstrip("/")
        return path == prefix or path.startswith(prefix + "/")

    async def dispatch(self, request: Request, call_next):
        settings = get_settings()
        prefix = self.path_prefix if self.path_prefix is not None else settings.SLACK_VERIFY_PATH_PREFIX
        if not self._applies_to(request.url.path, prefix):
            return await call_next(request)

        secret = self.secret_provider() if self.secret_provider else settings.SLACK_SIGNING_SECRET

        # starlette caches this and replays it to the downstream route
        raw_body = await request.body()

        try:
            verify_slack_request(
                secret=secret,
                signature=request.headers.get("x-slack-signature"),
                timestamp=request.headers.get("x-slack-request-timestamp"),
                body=raw_body,
                now=self.clock(),
                max_age_seconds=settings.SLACK_REQUEST_MAX_AGE_SECONDS,
            )
        except SlackVerificationError as exc:
            logger.warning("Rejected Slack request path=%s status=%s reason=%s",
                           request.url.path, exc.status_code, exc.detail)
            return PlainTextResponse(exc.detail, status_code=exc.status_code)

        logger.debug("Verified Slack request path=%s", request.url.path)
        return await call_next(request)
