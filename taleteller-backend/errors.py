class StoryError(Exception):
    """Base class for errors raised by the story backend and client."""


class ValidationError(StoryError):
    """Input rejected before any network call (empty text, unknown mode...)."""


class UpstreamError(StoryError):
    """An external service failed or answered with something unusable.

    Only the message is ever shown to the user; the upstream detail is
    logged where the failure is caught.
    """

    def __init__(self, message: str = "Upstream service failed"):
        super().__init__(message)
        self.message = message
