import time

import requests
from flask import current_app, g, request
from jose import jwt

from .config import ALGORITHMS, USERS
from .errors import AuthError, Forbidden
from .store import get_store


VERIFIER_EXTENSION = "shipyard.verifier"

NOT_REGISTERED = "The associated user is not registered"


def get_verifier():
    return current_app.extensions[VERIFIER_EXTENSION]


# This code is adapted from https://auth0.com/docs/quickstart/backend/python/01-authorization
class TokenVerifier:
    """Verifies RS256 bearer tokens issued by an Auth0 tenant."""

    def __init__(self, domain, audience=None, algorithms=ALGORITHMS, session=None,
                 refresh_interval=12, clock=time.monotonic):
        self.domain = domain
        self.audience = audience
        self.algorithms = algorithms
        self.session = session or requests.Session()
        # At most one key set download every refresh_interval seconds (5 a minute)
        self.refresh_interval = refresh_interval
        self.clock = clock
        self._jwks = None
        self._fetched_at = None

    @property
    def issuer(self):
        return "https://" + self.domain + "/"

    @property
    def jwks_url(self):
        return "https://" + self.domain + "/.well-known/jwks.json"

    def can_refresh(self):
        return self._fetched_at is None or self.clock() - self._fetched_at >= self.refresh_interval

    def jwks(self, refresh=False):
        if self._jwks is None or (refresh and self.can_refresh()):
            response = self.session.get(self.jwks_url, timeout=10)
            response.raise_for_status()
            self._jwks = response.json()
            self._fetched_at = self.clock()
        return self._jwks

    def find_rsa_key(self, kid):
        key = self._match_key(self.jwks(), kid)
        # Signing keys rotate, so an unknown kid may refetch the key set
        if key is None and self.can_refresh():
            key = self._match_key(self.jwks(refresh=True), kid)
        return key

    @staticmethod
    def _match_key(jwks, kid):
        for key in jwks["keys"]:
            if key["kid"] == kid:
                return {
                    "kty": key["kty"],
                    "kid": key["kid"],
                    "use": key["use"],
                    "n": key["n"],
                    "e": key["e"]
                }
        return None

    def verify(self, token):
        try:
            unverified_header = jwt.get_unverified_header(token)
        except jwt.JWTError:
            raise AuthError({"code": "invalid_header",
                             "description":
                                 "Invalid header. "
                                 "Use an RS256 signed JWT Access Token"}, 401)
        if unverified_header.get("alg") not in self.algorithms:
            raise AuthError({"code": "invalid_header",
                             "description":
                                 "Invalid header. "
                                 "Use an RS256 signed JWT Access Token"}, 401)

        rsa_key = self.find_rsa_key(unverified_header.get("kid"))
        if not rsa_key:
            raise AuthError({"code": "no_rsa_key",
                             "description": "No RSA key in JWKS"}, 401)

        try:
            payload = jwt.decode(
                token,
                rsa_key,
                algorithms=self.algorithms,
                audience=self.audience or None,
                issuer=self.issuer,
                options={"verify_aud": bool(self.audience)}
            )
        except jwt.ExpiredSignatureError:
            raise AuthError({"code": "token_expired",
                             "description": "token is expired"}, 401)
        except jwt.JWTClaimsError:
            raise AuthError({"code": "invalid_claims",
                             "description":
                                 "incorrect claims,"
                                 " please check the audience and issuer"}, 401)
        except jwt.JWTError:
            raise AuthError({"code": "invalid_header",
                             "description":
                                 "Unable to parse authentication"
                                 " token."}, 401)

        return payload


def bearer_token():
    auth_header = request.headers.get("Authorization", "").split()
    if len(auth_header) != 2 or auth_header[0].lower() != "bearer":
        raise AuthError({"code": "no auth header",
                         "description":
                             "Authorization header is missing"}, 401)
    return auth_header[1]


# Verify the JWT in the request's Authorization header
def require_jwt():
    g.user = get_verifier().verify(bearer_token())


# Assert the token's subject is a registered user
def require_registered():
    if get_store().get(USERS, g.user["sub"]) is None:
        raise Forbidden(NOT_REGISTERED)
