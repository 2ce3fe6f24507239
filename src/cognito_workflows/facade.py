"""
Awaitable user pool workflows.

Every ``AuthFacade`` coroutine forwards to one blocking ``CognitoUser`` /
``UserPool`` call on the event loop's executor and settles exactly once with
that call's result. Provider failures are re-raised as the matching
``ProviderError`` subclass with the provider exception kept as ``cause``.
"""

import asyncio
import functools
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from botocore.exceptions import BotoCoreError, ClientError

from .config import UserPoolConfig
from .exceptions import (
    AttributeFetchError,
    AuthenticationFailure,
    ConfirmError,
    NoActiveSession,
    ProviderError,
    SessionError,
    SignUpError,
    UnsupportedChallenge,
)
from .pool import (
    AuthenticationDetails,
    CognitoUser,
    CognitoUserSession,
    NewPasswordChallenge,
    SignUpResult,
    UserPool,
)

logger = logging.getLogger(__name__)

# Failures that originate from the identity client
PROVIDER_ERRORS = (ClientError, BotoCoreError, NoActiveSession, UnsupportedChallenge)

# Cognito rejects this attribute when it is sent back in a challenge response
READ_ONLY_ATTRIBUTES = ('email_verified',)


@dataclass(frozen=True)
class Authenticated:
    session: CognitoUserSession


@dataclass(frozen=True)
class NewPasswordRequired:
    """
    The user was created by an administrator and must pick a new password
    (and fill ``required_attributes``, if any) before authentication completes.
    Pass ``user`` and ``user_attributes`` to ``AuthFacade.complete_new_password``.
    """

    user: CognitoUser
    user_attributes: Dict[str, str]
    required_attributes: List[str] = field(default_factory=list)


AuthOutcome = Union[Authenticated, NewPasswordRequired]


def attribute_map(attributes) -> Dict[str, str]:
    """Reduce Cognito's [{'Name': ..., 'Value': ...}] list to a dict"""
    result = {}
    for item in attributes:
        name = item['Name']
        if name in result:
            raise ValueError(f"Duplicate attribute '{name}'")
        result[name] = item['Value']
    return result


def without_read_only(attributes):
    return {name: value for name, value in attributes.items() if name not in READ_ONLY_ATTRIBUTES}


def _log_challenge_result(user, future):
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.warning("New password challenge for %s failed: %s", user.username, exc)


class AuthFacade:
    def __init__(self, config: UserPoolConfig, client=None, executor=None):
        self.config = config
        self._client = client
        self._executor = executor
        self.pool = self.create_pool()

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(func, *args))

    def create_pool(self) -> UserPool:
        """Build the user pool client from the configuration"""
        return UserPool(self.config, client=self._client)

    def current_user(self) -> Optional[CognitoUser]:
        """Return the user that last authenticated against the pool, if any"""
        return self.pool.get_current_user()

    def user_handle(self, username) -> CognitoUser:
        """Create a handle for a user of the pool"""
        return self.pool.user(username)

    async def id_token(self, user: CognitoUser) -> str:
        """Return the ID token of the user's current session"""
        session = user.get_sign_in_user_session()
        if session is None:
            raise NoActiveSession(user.username)
        return session.id_token

    async def user_attributes(self, user: CognitoUser) -> Dict[str, str]:
        """Validate (or refresh) the session, then fetch the user's attributes"""
        try:
            await self._run(user.get_session)
        except PROVIDER_ERRORS as e:
            raise SessionError(e) from e

        try:
            raw = await self._run(user.get_user_attributes)
            return attribute_map(raw)
        except PROVIDER_ERRORS + (KeyError, TypeError, ValueError) as e:
            raise AttributeFetchError(e) from e

    async def sign_up(self, username, password, email) -> SignUpResult:
        """Register a user with an email attribute"""
        attributes = [{'Name': 'email', 'Value': email}]
        try:
            return await self._run(self.pool.sign_up, username, password, attributes, None)
        except PROVIDER_ERRORS as e:
            raise SignUpError(e) from e

    async def sign_in(self, username, password) -> AuthOutcome:
        """Authenticate a user, or report that a new password is required"""
        user = self.user_handle(username)
        details = AuthenticationDetails(username=username, password=password)
        try:
            result = await self._run(user.authenticate_user, details)
        except PROVIDER_ERRORS as e:
            raise AuthenticationFailure(e) from e

        if isinstance(result, NewPasswordChallenge):
            return NewPasswordRequired(
                user=user,
                user_attributes=without_read_only(result.user_attributes),
                required_attributes=result.required_attributes,
            )
        return Authenticated(session=result)

    async def confirm_sign_up(self, username, code):
        """Confirm a registration with the code Cognito sent"""
        user = self.user_handle(username)
        try:
            return await self._run(user.confirm_registration, code, True)
        except PROVIDER_ERRORS as e:
            raise ConfirmError(e) from e

    async def complete_new_password(self, user: CognitoUser, user_attributes, new_password) -> None:
        """
        Submit the new password challenge and return without waiting for Cognito.

        The outcome is not reported here: on success the user gets a session,
        on failure it stays without one and the error is logged.
        """
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(
            self._executor,
            functools.partial(
                user.complete_new_password_challenge,
                new_password,
                without_read_only(user_attributes),
            ),
        )
        future.add_done_callback(functools.partial(_log_challenge_result, user))

    async def request_attribute_verification_code(self, user: CognitoUser, attribute):
        """Ask Cognito to send a verification code for an attribute"""
        try:
            return await self._run(user.get_attribute_verification_code, attribute)
        except PROVIDER_ERRORS as e:
            raise ProviderError(e) from e

    async def verify_attribute(self, user: CognitoUser, attribute, code):
        """Verify an attribute with the code Cognito sent"""
        try:
            return await self._run(user.verify_attribute, attribute, code)
        except PROVIDER_ERRORS as e:
            raise ProviderError(e) from e

    async def forgot_password(self, user: CognitoUser):
        """Start the forgotten password flow"""
        try:
            return await self._run(user.forgot_password)
        except PROVIDER_ERRORS as e:
            raise ProviderError(e) from e

    async def confirm_password(self, user: CognitoUser, code, new_password):
        """Set a new password with the reset code Cognito sent"""
        try:
            return await self._run(user.confirm_password, code, new_password)
        except PROVIDER_ERRORS as e:
            raise ProviderError(e) from e
