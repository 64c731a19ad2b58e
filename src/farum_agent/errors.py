from __future__ import annotations


class FarumError(Exception):
    """Base class for every error raised by the conversation core."""


class NotFoundError(FarumError):
    pass


class ValidationError(FarumError):
    pass


class StorageError(FarumError):
    pass


class GenerationError(FarumError):
    pass


class ConfigurationError(FarumError):
    pass


class StageFailedError(FarumError):
    """A pipeline stage raised; the original exception is ``__cause__``."""

    def __init__(self, stage: str, error: BaseException):
        super().__init__(f"agent {stage} failed: {error}")
        self.stage = stage
        self.error = error
