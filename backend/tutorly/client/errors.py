from __future__ import annotations


class TutorlyClientError(Exception):
    """Base class for errors raised by the session client."""


class IdentityProviderError(TutorlyClientError):
    """The identity provider rejected an operation; message is user-facing."""


class EmailNotVerifiedError(IdentityProviderError):
    def __init__(self, email: str) -> None:
        super().__init__(
            "Please verify your email before logging in. "
            f"Check your inbox for the verification link sent to {email}."
        )
        self.email = email


class ProfileFetchError(TutorlyClientError):
    """The profile could not be retrieved (network, server or payload error)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProfileNotFoundError(ProfileFetchError):
    """The identity exists upstream but has no application profile yet."""

    def __init__(self, uid: str) -> None:
        super().__init__(f"No profile registered for {uid}", status_code=404)
        self.uid = uid


class BackendRequestError(TutorlyClientError):
    """A backend call answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class RoleCheckFailedError(BackendRequestError):
    """The account behind the email does not carry the role picked at login."""


class SignUpValidationError(TutorlyClientError):
    """The sign-up form was rejected before contacting any service."""


class RedirectLoopError(TutorlyClientError):
    def __init__(self, chain: list[str]) -> None:
        super().__init__("Redirect loop: " + " -> ".join(chain))
        self.chain = chain
