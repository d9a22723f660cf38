from pydantic import BaseModel, Field


class PublishRequest(BaseModel):
    message: str = Field(..., min_length=1)

class EventOut(BaseModel):
    message: str
    time: str
