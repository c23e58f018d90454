from typing import Optional


class AnalysisError(Exception):
    """Base error for the analysis endpoints. `message` is safe to show to callers."""

    status_code: int = 500
    message: str = "Internal server error."

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class BadRequest(AnalysisError):
    status_code = 400
    message = "Bad request."


class NotFound(AnalysisError):
    status_code = 404
    message = "Not found."


class UpstreamError(AnalysisError):
    """
    A dependent service call did not succeed.
    `detail` is for server logs only; callers always get the generic message.
    """
    status_code = 500

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__()

    def __str__(self) -> str:
        return self.detail
