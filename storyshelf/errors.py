"""Exception hierarchy for the storyshelf data layer.

Transport and server failures are always recoverable: repositories keep their
cache and the caller may retry. Content-safety rejections coming back from
the backend are wrapped in ``ContentSafetyViolation`` so the presentation
layer can show the structured reason, suggestion and example topics.
"""

from typing import Optional


class StoryshelfError(Exception):
    """Base class for every error raised by storyshelf."""

    retryable = False


class NetworkError(StoryshelfError):
    """The request never produced an HTTP response (offline, timeout, DNS)."""

    retryable = True


class ServerError(StoryshelfError):
    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        super().__init__(message or f"Server responded with HTTP {status_code}")

    @property
    def retryable(self) -> bool:
        return self.status_code >= 500 or self.status_code == 429


class AuthError(StoryshelfError):
    """Missing, expired or rejected credentials."""


class InsufficientCoinsError(StoryshelfError):
    """The backend refused a paid action because the coin balance is too low."""


class ContentSafetyViolation(StoryshelfError):
    def __init__(self, rejection):
        self.rejection = rejection
        super().__init__(rejection.reason)


class InvalidCredentialsError(AuthError):
    """Sign-up input failed the local email or password checks."""

    def __init__(self, rejection):
        self.rejection = rejection
        super().__init__(rejection.reason)


class DecodingError(StoryshelfError):
    """A backend record is missing a field with no fallback."""


class RepositoryError(StoryshelfError):
    def __init__(self, repository: str, scope: str, message: str = ""):
        self.repository = repository
        self.scope = scope
        super().__init__(message or f"{repository}[{scope}]")


class RemoteFetchError(RepositoryError):
    def __init__(self, repository: str, scope: str, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(repository, scope, f"Fetching {repository} for '{scope}' failed{detail}")
        self.cause = cause

    @property
    def retryable(self) -> bool:
        return getattr(self.cause, "retryable", True)


class RemoteMutationError(RepositoryError):
    def __init__(self, repository: str, scope: str, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(
            repository, scope,
            f"Remote change to {repository} for '{scope}' failed and was rolled back{detail}",
        )
        self.cause = cause


class RepositoryClearedError(RepositoryError):
    def __init__(self, repository: str, scope: str):
        super().__init__(repository, scope, f"{repository} cache for '{scope}' was cleared while loading")
