from __future__ import annotations


class PipelineError(Exception):
    """Base class for every failure the recommendation endpoint reports."""

    status_code: int = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, str]:
        payload = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class MalformedRequest(PipelineError):
    status_code = 400

    def __init__(self, details: str | None = None) -> None:
        super().__init__("Malformed request body", details)


class OriginNotAllowed(PipelineError):
    status_code = 403

    def __init__(self) -> None:
        super().__init__("Origin not allowed")


class MethodNotAllowed(PipelineError):
    status_code = 405

    def __init__(self, method: str) -> None:
        super().__init__(f"Method {method} not allowed")


class UpstreamError(PipelineError):
    """A remote call failed. Fatal for the request, never retried."""

    stage: str = "upstream"
    public_message: str = "Upstream service failed"

    def __init__(self, details: str | None = None) -> None:
        super().__init__(self.public_message, details)


class UpstreamEmbeddingError(UpstreamError):
    stage = "embedding"
    public_message = "Error creating embeddings for userResponses"


class UpstreamRetrievalError(UpstreamError):
    stage = "search"
    public_message = "Error matching documents in the vector store"


class UpstreamGenerationError(UpstreamError):
    stage = "generation"
    public_message = "Error creating chat completion"
