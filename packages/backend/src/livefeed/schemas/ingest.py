"""Pydantic schemas for the publish and health endpoints.

Learn: The ingest request body is deliberately NOT a Pydantic model.
Publishers may send any JSON, a form post or plain text, and the codec
decides what becomes of it. Only the responses are typed.
"""

from pydantic import BaseModel, ConfigDict, Field


class IngestResponse(BaseModel):
    """Acknowledgement for one publish call."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    delivered_to: int = Field(
        ...,
        ge=0,
        alias="deliveredTo",
        description="Subscribers the event was attempted to (not confirmed)",
    )


class HealthResponse(BaseModel):
    ok: bool = True
    clients: int = Field(..., ge=0)
