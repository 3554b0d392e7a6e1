"""Error taxonomy shared by the capture pipeline and the HTTP surface."""
from __future__ import annotations


class GridshotError(Exception):
    """Base error. ``status`` is the HTTP status the server answers with."""

    status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class SessionNotReady(GridshotError):
    """The browser session has not been launched, or was terminated."""


class InvalidInput(GridshotError):
    status = 400


class MissingArtifact(GridshotError):
    """A raw capture or grid image expected on disk is absent."""


class DimensionMismatch(MissingArtifact):
    """Grid image size differs from the raw capture it is laid over."""


class PipelineFailure(GridshotError):
    """A step of the grid screenshot pipeline failed.

    ``stage`` names the step; ``details`` carries the originating message.
    """

    def __init__(self, stage: str, details: str) -> None:
        super().__init__(f"{stage} failed: {details}")
        self.stage = stage
        self.details = details

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["stage"] = self.stage
        data["details"] = self.details
        return data
