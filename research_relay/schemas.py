from pydantic import BaseModel

FAILURE_LABEL = "Failed to process request"


class RelayErrorResponse(BaseModel):
    error: str = FAILURE_LABEL
    details: str


class HealthResponse(BaseModel):
    status: str
    service: str
    upstream_base_url: str
