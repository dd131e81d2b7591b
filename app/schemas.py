from pydantic import BaseModel


class SlackAck(BaseModel):
    ok: bool = True
    # size of the raw body the route received, after verification
    received_bytes: int = 0
