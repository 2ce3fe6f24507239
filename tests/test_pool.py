import pytest

from cognito_workflows import NoActiveSession, UnsupportedChallenge
from cognito_workflows.pool import AuthenticationDetails, NewPasswordChallenge

from conftest import CHALLENGE_SESSION, authentication_result, new_password_challenge, password_auth_params


def test_authenticate_user_sets_current_user(facade, stubber):
    user = facade.pool.user("bob")
    stubber.add_response("initiate_auth", {"AuthenticationResult": authentication_result()}, password_auth_params())

    session = user.authenticate_user(AuthenticationDetails(username="bob", password="Passw0rd!"))

    assert user.get_sign_in_user_session() is session
    assert facade.pool.get_current_user() is user


def test_challenge_keeps_attribute_names_without_prefix(facade, stubber):
    user = facade.pool.user("bob")
    stubber.add_response(
        "initiate_auth",
        new_password_challenge({"email": "bob@example.com"}, ["userAttributes.name", "phone_number"]),
        password_auth_params(),
    )

    challenge = user.authenticate_user(AuthenticationDetails(username="bob", password="Passw0rd!"))

    assert challenge == NewPasswordChallenge({"email": "bob@example.com"}, ["name", "phone_number"])
    assert user._challenge_session == CHALLENGE_SESSION


def test_complete_challenge_without_pending_challenge(facade):
    with pytest.raises(NoActiveSession):
        facade.pool.user("bob").complete_new_password_challenge("N3wPassw0rd!", {})


def test_challenge_answered_with_another_challenge(facade, stubber):
    user = facade.pool.user("bob")
    stubber.add_response("initiate_auth", new_password_challenge({}), password_auth_params())
    user.authenticate_user(AuthenticationDetails(username="bob", password="Passw0rd!"))
    stubber.add_response(
        "respond_to_auth_challenge",
        {"ChallengeName": "MFA_SETUP", "Session": CHALLENGE_SESSION, "ChallengeParameters": {}},
    )

    with pytest.raises(UnsupportedChallenge):
        user.complete_new_password_challenge("N3wPassw0rd!", {})
    assert user.session is None


def test_expired_session_without_refresh_token(signed_in_user):
    signed_in_user.session.refresh_token = None
    signed_in_user.session.expires_at = 0

    with pytest.raises(NoActiveSession):
        signed_in_user.get_session()


def test_valid_session_is_returned_without_a_call(signed_in_user):
    assert signed_in_user.get_session() is signed_in_user.session


def test_sign_out_clears_session_and_current_user(facade, signed_in_user):
    assert facade.current_user() is signed_in_user

    signed_in_user.sign_out()

    assert signed_in_user.session is None
    assert facade.current_user() is None
