import json

import boto3
import pytest
from botocore.stub import Stubber

from cognito_workflows import AuthFacade, UserPoolConfig
from cognito_workflows.pool import AuthenticationDetails

USER_POOL_ID = "ap-southeast-1_TestPool1"
CLIENT_ID = "53pe79o2v0mmtbitpbvnanleo"
CHALLENGE_SESSION = "AYABeChallengeSessionToken0123456789"


def authentication_result(refresh_token="refresh-token", expires_in=3600):
    result = {
        "AccessToken": "access-token",
        "IdToken": "id-token",
        "ExpiresIn": expires_in,
        "TokenType": "Bearer",
    }
    if refresh_token:
        result["RefreshToken"] = refresh_token
    return result


def password_auth_params(username="bob", password="Passw0rd!"):
    return {
        "ClientId": CLIENT_ID,
        "AuthFlow": "USER_PASSWORD_AUTH",
        "AuthParameters": {"USERNAME": username, "PASSWORD": password},
    }


def new_password_challenge(user_attributes, required_attributes=()):
    return {
        "ChallengeName": "NEW_PASSWORD_REQUIRED",
        "Session": CHALLENGE_SESSION,
        "ChallengeParameters": {
            "USER_ID_FOR_SRP": "bob",
            "userAttributes": json.dumps(user_attributes),
            "requiredAttributes": json.dumps(list(required_attributes)),
        },
    }


@pytest.fixture
def config():
    return UserPoolConfig(user_pool_id=USER_POOL_ID, client_id=CLIENT_ID)


@pytest.fixture
def cognito_client(config):
    return boto3.client(
        "cognito-idp",
        region_name=config.region,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def stubber(cognito_client):
    with Stubber(cognito_client) as stubber:
        yield stubber
        stubber.assert_no_pending_responses()


@pytest.fixture
def facade(config, cognito_client, stubber):
    return AuthFacade(config, client=cognito_client)


@pytest.fixture
def signed_in_user(facade, stubber):
    """A handle that already carries a valid session"""
    user = facade.user_handle("bob")
    stubber.add_response("initiate_auth", {"AuthenticationResult": authentication_result()}, password_auth_params())
    user.authenticate_user(AuthenticationDetails(username="bob", password="Passw0rd!"))
    return user
