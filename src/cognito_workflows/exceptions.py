"""Errors raised by the user pool workflows."""


class CognitoWorkflowError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(CognitoWorkflowError):
    """The user pool configuration is missing or unusable."""


class NoActiveSession(CognitoWorkflowError):
    """The user has not authenticated, or its session cannot be refreshed."""

    def __init__(self, username=None):
        self.username = username
        if username:
            message = f"User '{username}' is not authenticated"
        else:
            message = "User is not authenticated"
        super().__init__(message)


class UnsupportedChallenge(CognitoWorkflowError):
    """Cognito answered sign-in with a challenge this package does not handle."""

    def __init__(self, challenge_name):
        self.challenge_name = challenge_name
        super().__init__(f"Unsupported challenge: {challenge_name}")


class ProviderError(CognitoWorkflowError):
    """
    A provider call failed.

    ``cause`` is the exception raised by the identity client, untouched. For
    Cognito API failures it is a ``botocore.exceptions.ClientError`` and the
    provider's error code lives in ``cause.response['Error']['Code']``.
    """

    def __init__(self, cause):
        self.cause = cause
        super().__init__(str(cause))


class SessionError(ProviderError):
    """The session could not be validated or refreshed."""


class AttributeFetchError(ProviderError):
    """User attributes could not be fetched or read."""


class SignUpError(ProviderError):
    """Cognito rejected a sign-up."""


class ConfirmError(ProviderError):
    """Cognito rejected a sign-up confirmation code."""


class AuthenticationFailure(ProviderError):
    """Sign-in failed."""
