__all__ = ("RemoteRequestError",)


class RemoteRequestError(Exception):
    """Raised when the remote content endpoint answers with a non-success status."""

    def __init__(self, status: int, message: str):
        self.status = status
        super().__init__(message)
