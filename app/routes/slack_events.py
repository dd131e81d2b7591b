from fastapi import APIRouter, Request

from ..schemas import SlackAck

router = APIRouter(prefix="/slack", tags=["slack"])


async def _ack(request: Request) -> SlackAck:
    # the body is handed over untouched; handlers own parsing it
    raw_body = await request.body()
    return SlackAck(received_bytes=len(raw_body))


@router.post("/events", response_model=SlackAck)
async def slack_events(request: Request):
    return await _ack(request)


@router.post("/commands", response_model=SlackAck)
async def slack_commands(request: Request):
    return await _ack(request)


@router.post("/interactions", response_model=SlackAck)
async def slack_interactions(request: Request):
    return await _ack(request)
