"""Request models for the HTTP API."""

from pydantic import BaseModel


class QueryRequest(BaseModel):
    """Question about one of the caller's documents."""

    question: str = ""
    document_id: str | None = None


class OtpRequest(BaseModel):
    """Email address that should receive a one-time code."""

    email: str


class OtpVerifyRequest(BaseModel):
    """Email address and the code it received."""

    email: str
    code: str
