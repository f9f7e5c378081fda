from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    code: str
    message: str
    details: list[dict] = Field(default_factory=list)
