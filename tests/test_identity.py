from __future__ import annotations

import time

import jwt
import pytest

from redhope.errors import Unauthorized
from redhope.services.identity import BearerIdentityVerifier, bearer_token, parse_api_tokens

SECRET = "test-secret-which-is-long-enough-for-hs256"


def test_parse_api_tokens():
    assert parse_api_tokens("abc=A@x.com, bad, =x@y.z,def=b@x.com") == {"abc": "a@x.com", "def": "b@x.com"}
    assert parse_api_tokens("") == {}


@pytest.mark.parametrize("header,expected", [("Bearer abc", "abc"), ("bearer  abc ", "abc"), ("Basic abc", None), (None, None), ("Bearer ", None)])
def test_bearer_token(header, expected):
    assert bearer_token(header) == expected


def test_static_token_maps_to_email():
    v = BearerIdentityVerifier(api_tokens={"tok": "a@x.com"})
    assert v.verify("Bearer tok") == "a@x.com"


@pytest.mark.parametrize("header", [None, "", "Bearer nope", "Token tok"])
def test_rejects_missing_or_unknown_tokens(header):
    with pytest.raises(Unauthorized):
        BearerIdentityVerifier(api_tokens={"tok": "a@x.com"}).verify(header)


def test_jwt_email_claim():
    v = BearerIdentityVerifier(jwt_secret=SECRET)
    token = jwt.encode({"email": "Donor@X.com", "exp": int(time.time()) + 60}, SECRET, algorithm="HS256")
    assert v.verify(f"Bearer {token}") == "donor@x.com"


def test_jwt_sub_claim_and_audience():
    v = BearerIdentityVerifier(jwt_secret=SECRET, audience="redhope-api")
    token = jwt.encode({"sub": "vol@x.com", "aud": "redhope-api"}, SECRET, algorithm="HS256")
    assert v.verify(f"Bearer {token}") == "vol@x.com"

    wrong = jwt.encode({"sub": "vol@x.com", "aud": "someone-else"}, SECRET, algorithm="HS256")
    with pytest.raises(Unauthorized):
        v.verify(f"Bearer {wrong}")


def test_expired_or_foreign_jwt_rejected():
    v = BearerIdentityVerifier(jwt_secret=SECRET)
    expired = jwt.encode({"email": "a@x.com", "exp": int(time.time()) - 60}, SECRET, algorithm="HS256")
    foreign = jwt.encode({"email": "a@x.com"}, "another-secret-also-long-enough-for-hs", algorithm="HS256")
    for tok in (expired, foreign):
        with pytest.raises(Unauthorized):
            v.verify(f"Bearer {tok}")


def test_jwt_without_email_principal_rejected():
    v = BearerIdentityVerifier(jwt_secret=SECRET)
    token = jwt.encode({"sub": "user-42"}, SECRET, algorithm="HS256")
    with pytest.raises(Unauthorized):
        v.verify(f"Bearer {token}")
