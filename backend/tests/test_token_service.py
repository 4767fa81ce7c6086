import unittest
from datetime import datetime, timedelta, timezone

import jwt
from flask import Flask

from farmstore.models import User
from farmstore.services import token_service
from farmstore.services.token_service import TokenError


class TokenServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = Flask(__name__)
        cls.app.config.update(
            JWT_ACCESS_SECRET="access-test",
            JWT_REFRESH_SECRET="refresh-test",
            JWT_ACCESS_EXPIRES_MINUTES=15,
            JWT_REFRESH_EXPIRES_DAYS=7,
            JWT_ISSUER="farmstore-test",
            JWT_AUDIENCE="farmstore-client",
            JWT_ALGORITHM="HS256",
            TESTING=True,
        )
        cls.ctx = cls.app.app_context()
        cls.ctx.push()

    @classmethod
    def tearDownClass(cls):
        cls.ctx.pop()

    def setUp(self):
        self.user = User(
            id=7,
            email="buyer@farm.test",
            role="user",
            classification="wholesale_verified",
        )

    def test_access_token_claims(self):
        claims = token_service.decode_access_token(token_service.issue_access_token(self.user))
        self.assertEqual(claims["userId"], 7)
        self.assertEqual(claims["email"], "buyer@farm.test")
        self.assertEqual(claims["userType"], "wholesale_verified")
        self.assertEqual(claims["type"], "access")

    def test_pair_tokens_are_distinct(self):
        access, refresh = token_service.issue_token_pair(self.user)
        self.assertNotEqual(access, refresh)
        self.assertNotEqual(token_service.issue_refresh_token(self.user), refresh)

    def test_refresh_token_rejected_as_access(self):
        refresh = token_service.issue_refresh_token(self.user)
        with self.assertRaises(TokenError):
            token_service.decode_access_token(refresh)

    def test_access_token_rejected_as_refresh(self):
        access = token_service.issue_access_token(self.user)
        with self.assertRaises(TokenError):
            token_service.decode_refresh_token(access)

    def test_expired_token(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "userId": 7,
                "type": "access",
                "iss": "farmstore-test",
                "aud": "farmstore-client",
                "iat": now - timedelta(hours=2),
                "exp": now - timedelta(hours=1),
            },
            "access-test",
            algorithm="HS256",
        )
        with self.assertRaisesRegex(TokenError, "expired"):
            token_service.decode_access_token(token)

    def test_wrong_audience(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "userId": 7,
                "type": "access",
                "iss": "farmstore-test",
                "aud": "someone-else",
                "iat": now,
                "exp": now + timedelta(minutes=5),
            },
            "access-test",
            algorithm="HS256",
        )
        with self.assertRaises(TokenError):
            token_service.decode_access_token(token)

    def test_tampered_token(self):
        token = token_service.issue_access_token(self.user)
        with self.assertRaises(TokenError):
            token_service.decode_access_token(token[:-2] + ("AA" if token[-2:] != "AA" else "BB"))

    def test_empty_token(self):
        with self.assertRaises(TokenError):
            token_service.decode_access_token("")

    def test_hash_token_is_stable_sha256(self):
        digest = token_service.hash_token("abc")
        self.assertEqual(len(digest), 64)
        self.assertEqual(digest, token_service.hash_token("abc"))


if __name__ == "__main__":
    unittest.main()
