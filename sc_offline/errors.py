from __future__ import annotations


class OfflineDataError(Exception):
    """Base error for the offline corpus tooling."""


class NotFound(OfflineDataError):
    def __init__(self, uid: str, what: str = "Sutta"):
        super().__init__(f"{what} not found in index: {uid}")
        self.uid = uid


class UpstreamUnavailable(OfflineDataError):
    """Remote service or corpus sync failed; callers degrade to stale data."""


class MalformedLocalData(OfflineDataError):
    def __init__(self, message: str, *, path=None):
        super().__init__(message)
        self.path = path


class PipelineStageFailure(OfflineDataError):
    def __init__(self, stage: str, cause: BaseException | None = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Stage '{stage}' failed{detail}")
        self.stage = stage
        self.cause = cause


class ConcurrentRunRejected(OfflineDataError):
    pass
