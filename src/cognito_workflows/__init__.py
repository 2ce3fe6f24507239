"""Cognito User Pool Workflows

This package exposes AWS Cognito User Pool sign-up, sign-in, confirmation,
password reset and attribute verification as awaitable operations.

Main components:
- facade: AuthFacade, one coroutine per workflow step
- pool: UserPool / CognitoUser, the boto3 binding the facade drives
- cli: command line front end
"""

from .config import UserPoolConfig, load_config
from .exceptions import (
    AttributeFetchError,
    AuthenticationFailure,
    CognitoWorkflowError,
    ConfigurationError,
    ConfirmError,
    NoActiveSession,
    ProviderError,
    SessionError,
    SignUpError,
    UnsupportedChallenge,
)
from .facade import AuthFacade, AuthOutcome, Authenticated, NewPasswordRequired
from .pool import CognitoUser, CognitoUserSession, SignUpResult, UserPool

__version__ = "1.0.0"

__all__ = [
    "AuthFacade",
    "AuthOutcome",
    "Authenticated",
    "NewPasswordRequired",
    "UserPool",
    "CognitoUser",
    "CognitoUserSession",
    "SignUpResult",
    "UserPoolConfig",
    "load_config",
    "CognitoWorkflowError",
    "ConfigurationError",
    "NoActiveSession",
    "UnsupportedChallenge",
    "ProviderError",
    "SessionError",
    "AttributeFetchError",
    "SignUpError",
    "ConfirmError",
    "AuthenticationFailure",
]
