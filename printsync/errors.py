"""Exception types raised by the sync pipeline."""

from typing import Any, Optional


class ConfigError(Exception):
    """Required configuration is missing or invalid. Fatal at startup."""


class PipelineError(Exception):
    """Base class for failures recovered at the cycle boundary."""

    stage = "pipeline"

    def __init__(self, message: str, *, stage: Optional[str] = None):
        super().__init__(message)
        if stage:
            self.stage = stage

    def context(self) -> dict:
        return {"stage": self.stage, "error": str(self)}


class StoreError(PipelineError):
    """The source record store is unreachable or rejected the query."""

    stage = "store"


class NoCapabilityError(PipelineError):
    """No blueprint/provider/variant combination could be resolved."""

    stage = "capability"


class CatalogRequestError(PipelineError):
    """A catalog discovery request failed at the transport or HTTP level."""

    stage = "capability"

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Any = None,
        stage: Optional[str] = None,
    ):
        super().__init__(message, stage=stage)
        self.status_code = status_code
        self.body = body

    def context(self) -> dict:
        return {**super().context(), "status_code": self.status_code, "body": self.body}


class TransferError(PipelineError):
    """Content could not be handed to the catalog.

    ``kind`` is one of ``download``, ``remote`` or ``io``. Remote rejections
    carry the catalog's status code and error body.
    """

    stage = "transfer"

    DOWNLOAD = "download"
    REMOTE = "remote"
    IO = "io"

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        status_code: Optional[int] = None,
        body: Any = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.body = body

    def context(self) -> dict:
        return {
            **super().context(),
            "kind": self.kind,
            "status_code": self.status_code,
            "body": self.body,
        }


class SubmissionError(PipelineError):
    """The catalog rejected the product-creation request."""

    stage = "submit"

    def __init__(self, message: str, *, status_code: Optional[int], body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def context(self) -> dict:
        return {**super().context(), "status_code": self.status_code, "body": self.body}
