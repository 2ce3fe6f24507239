"""
Cognito User Pool client binding.

``UserPool`` and ``CognitoUser`` map each user pool capability onto exactly one
Cognito Identity Provider API call made through boto3. They are blocking;
``cognito_workflows.facade`` turns them into awaitables.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import boto3

from .exceptions import NoActiveSession, UnsupportedChallenge

logger = logging.getLogger(__name__)

NEW_PASSWORD_REQUIRED = 'NEW_PASSWORD_REQUIRED'
REQUIRED_ATTRIBUTE_PREFIX = 'userAttributes.'


def _payload(response):
    return {key: value for key, value in response.items() if key != 'ResponseMetadata'}


@dataclass
class CognitoUserSession:
    id_token: str
    access_token: str
    refresh_token: Optional[str]
    expires_at: float

    @classmethod
    def from_authentication_result(cls, result, refresh_token=None):
        return cls(
            id_token=result['IdToken'],
            access_token=result['AccessToken'],
            # Cognito does not send the refresh token back on refresh
            refresh_token=result.get('RefreshToken') or refresh_token,
            expires_at=time.time() + result.get('ExpiresIn', 3600),
        )

    def is_valid(self):
        return time.time() < self.expires_at


@dataclass
class AuthenticationDetails:
    username: str
    password: str = field(repr=False)


@dataclass
class NewPasswordChallenge:
    """Cognito wants a new password before it issues tokens."""

    user_attributes: Dict[str, str]
    required_attributes: List[str]


@dataclass
class SignUpResult:
    user: 'CognitoUser'
    user_confirmed: bool
    user_sub: str
    code_delivery_details: Optional[Dict[str, Any]] = None


class UserPool:
    def __init__(self, config, client=None):
        self.config = config
        self.user_pool_id = config.user_pool_id
        self.client_id = config.client_id
        self.region = config.region

        if client is None:
            client = boto3.client(
                'cognito-idp',
                region_name=self.region,
                endpoint_url=config.endpoint_url,
            )
        self.client = client
        self._current_user = None

    def get_current_user(self):
        """Return the last user that authenticated against this pool, if any"""
        return self._current_user

    def user(self, username):
        return CognitoUser(username, self)

    def sign_up(self, username, password, attributes, validation_data=None) -> SignUpResult:
        """Register a new user (SignUp)"""
        params = {
            'ClientId': self.client_id,
            'Username': username,
            'Password': password,
            'UserAttributes': list(attributes),
        }
        if validation_data:
            params['ValidationData'] = list(validation_data)

        logger.debug("SignUp for %s", username)
        response = self.client.sign_up(**params)
        return SignUpResult(
            user=self.user(username),
            user_confirmed=response['UserConfirmed'],
            user_sub=response['UserSub'],
            code_delivery_details=response.get('CodeDeliveryDetails'),
        )


class CognitoUser:
    def __init__(self, username, pool):
        self.username = username
        self.pool = pool
        self.session = None
        self._challenge_session = None

    def __repr__(self):
        return f"CognitoUser({self.username!r})"

    @property
    def client(self):
        return self.pool.client

    def _set_session(self, session):
        self.session = session
        self._challenge_session = None
        self.pool._current_user = self

    def _require_session(self):
        if self.session is None:
            raise NoActiveSession(self.username)
        return self.session

    def get_sign_in_user_session(self):
        return self.session

    def authenticate_user(self, details: AuthenticationDetails):
        """
        Authenticate with USER_PASSWORD_AUTH.

        Returns the new session, or a ``NewPasswordChallenge`` when Cognito
        requires a password change first. Any other challenge raises
        ``UnsupportedChallenge``.
        """
        logger.debug("InitiateAuth for %s", details.username)
        response = self.client.initiate_auth(
            ClientId=self.pool.client_id,
            AuthFlow='USER_PASSWORD_AUTH',
            AuthParameters={
                'USERNAME': details.username,
                'PASSWORD': details.password,
            },
        )

        if 'ChallengeName' in response:
            if response['ChallengeName'] != NEW_PASSWORD_REQUIRED:
                raise UnsupportedChallenge(response['ChallengeName'])

            self._challenge_session = response['Session']
            parameters = response.get('ChallengeParameters', {})
            user_attributes = json.loads(parameters.get('userAttributes') or '{}')
            required_attributes = [
                name[len(REQUIRED_ATTRIBUTE_PREFIX):] if name.startswith(REQUIRED_ATTRIBUTE_PREFIX) else name
                for name in json.loads(parameters.get('requiredAttributes') or '[]')
            ]
            return NewPasswordChallenge(user_attributes, required_attributes)

        session = CognitoUserSession.from_authentication_result(response['AuthenticationResult'])
        self._set_session(session)
        return session

    def complete_new_password_challenge(self, new_password, attributes):
        """Answer a NEW_PASSWORD_REQUIRED challenge"""
        if self._challenge_session is None:
            raise NoActiveSession(self.username)

        responses = {
            'USERNAME': self.username,
            'NEW_PASSWORD': new_password,
        }
        for name, value in attributes.items():
            responses[REQUIRED_ATTRIBUTE_PREFIX + name] = value

        logger.debug("RespondToAuthChallenge %s for %s", NEW_PASSWORD_REQUIRED, self.username)
        response = self.client.respond_to_auth_challenge(
            ClientId=self.pool.client_id,
            ChallengeName=NEW_PASSWORD_REQUIRED,
            Session=self._challenge_session,
            ChallengeResponses=responses,
        )

        if 'AuthenticationResult' not in response:
            raise UnsupportedChallenge(response.get('ChallengeName'))

        session = CognitoUserSession.from_authentication_result(response['AuthenticationResult'])
        self._set_session(session)
        return session

    def get_session(self) -> CognitoUserSession:
        """Return a valid session, refreshing it with the refresh token when expired"""
        session = self._require_session()
        if session.is_valid():
            return session
        if not session.refresh_token:
            raise NoActiveSession(self.username)

        logger.debug("Refreshing session for %s", self.username)
        response = self.client.initiate_auth(
            ClientId=self.pool.client_id,
            AuthFlow='REFRESH_TOKEN_AUTH',
            AuthParameters={'REFRESH_TOKEN': session.refresh_token},
        )
        session = CognitoUserSession.from_authentication_result(
            response['AuthenticationResult'], refresh_token=session.refresh_token
        )
        self._set_session(session)
        return session

    def get_user_attributes(self):
        """Fetch the raw [{'Name': ..., 'Value': ...}] attribute list (GetUser)"""
        session = self._require_session()
        logger.debug("GetUser for %s", self.username)
        response = self.client.get_user(AccessToken=session.access_token)
        return response['UserAttributes']

    def confirm_registration(self, code, force_alias_creation):
        logger.debug("ConfirmSignUp for %s", self.username)
        self.client.confirm_sign_up(
            ClientId=self.pool.client_id,
            Username=self.username,
            ConfirmationCode=code,
            ForceAliasCreation=force_alias_creation,
        )
        return 'SUCCESS'

    def get_attribute_verification_code(self, attribute):
        session = self._require_session()
        logger.debug("GetUserAttributeVerificationCode %s for %s", attribute, self.username)
        response = self.client.get_user_attribute_verification_code(
            AccessToken=session.access_token,
            AttributeName=attribute,
        )
        return _payload(response)

    def verify_attribute(self, attribute, code):
        session = self._require_session()
        logger.debug("VerifyUserAttribute %s for %s", attribute, self.username)
        self.client.verify_user_attribute(
            AccessToken=session.access_token,
            AttributeName=attribute,
            Code=code,
        )
        return 'SUCCESS'

    def forgot_password(self):
        logger.debug("ForgotPassword for %s", self.username)
        response = self.client.forgot_password(
            ClientId=self.pool.client_id,
            Username=self.username,
        )
        return _payload(response)

    def confirm_password(self, code, new_password):
        logger.debug("ConfirmForgotPassword for %s", self.username)
        self.client.confirm_forgot_password(
            ClientId=self.pool.client_id,
            Username=self.username,
            ConfirmationCode=code,
            Password=new_password,
        )
        return 'SUCCESS'

    def sign_out(self):
        """Forget the local session; tokens stay valid on the Cognito side"""
        self.session = None
        self._challenge_session = None
        if self.pool._current_user is self:
            self.pool._current_user = None
