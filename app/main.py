import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from .config import settings
from .middleware import SlackSignatureMiddleware
from .routes.slack_events import router as slack_router
from .security import SlackVerificationError

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Slack Request Verifier")

app.add_middleware(SlackSignatureMiddleware)


# routes that use the verify_slack_signature dependency get the same
# plain-text error bodies as the middleware
@app.exception_handler(SlackVerificationError)
async def slack_verification_error_handler(request: Request, exc: SlackVerificationError):
    return PlainTextResponse(exc.detail, status_code=exc.status_code)


app.include_router(slack_router)

@app.get("/health")
def health():
    return {"ok": True}
