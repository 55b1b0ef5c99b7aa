from datetime import timedelta

from jose import jwt

from security import TokenService, get_password_hash, verify_password


def test_token_round_trip(token_service):
    token, refresh_token = token_service.generate_all_tokens("a@bistro.com", "Ana", "Lee", "abc123")

    claims, msg = token_service.validate_token(token)
    assert msg == ""
    assert claims.email == "a@bistro.com"
    assert claims.first_name == "Ana"
    assert claims.last_name == "Lee"
    assert claims.uid == "abc123"

    refresh_claims, msg = token_service.validate_token(refresh_token)
    assert msg == ""
    assert refresh_claims.uid == "abc123"
    assert refresh_claims.exp > claims.exp


def test_token_lifetimes(token_service):
    token, refresh_token = token_service.generate_all_tokens("a@bistro.com", "Ana", "Lee", "abc123")
    access = jwt.get_unverified_claims(token)
    refresh = jwt.get_unverified_claims(refresh_token)

    lifetime_gap = refresh["exp"] - access["exp"]
    assert abs(lifetime_gap - timedelta(hours=144).total_seconds()) <= 1
    assert refresh["type"] == "refresh"
    assert "type" not in access


def test_expired_token_keeps_claims(token_service):
    expired = TokenService(token_service.secret_key, access_ttl=timedelta(seconds=-5))
    token, _ = expired.generate_all_tokens("a@bistro.com", "Ana", "Lee", "abc123")

    claims, msg = expired.validate_token(token)
    assert msg == "Token is expired"
    assert claims.uid == "abc123"


def test_wrong_key_is_rejected(token_service):
    token, _ = TokenService("other-key").generate_all_tokens("a@bistro.com", "Ana", "Lee", "x")

    claims, msg = token_service.validate_token(token)
    assert claims is None
    assert msg


def test_garbage_token_is_rejected(token_service):
    claims, msg = token_service.validate_token("not-a-token")
    assert claims is None
    assert msg


def test_token_without_identity_is_invalid(token_service):
    token = jwt.encode({"exp": 9999999999}, token_service.secret_key, algorithm="HS256")
    claims, msg = token_service.validate_token(token)
    assert claims is None
    assert msg == "Token is invalid"


def test_password_hashing():
    hashed = get_password_hash("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)
    assert not verify_password("wrong", hashed)


class TestAuthentication:
    def test_missing_token(self, anon):
        response = anon.get("/foods")
        assert response.status_code == 401
        assert response.json() == {"error": "No authorization header provided"}

    def test_invalid_token(self, anon):
        response = anon.get("/menus", headers={"token": "garbage"})
        assert response.status_code == 401
        assert response.json()["error"].startswith("An error occurred - ")

    def test_expired_token(self, anon, token_service):
        expired = TokenService(token_service.secret_key, access_ttl=timedelta(seconds=-5))
        token, _ = expired.generate_all_tokens("a@bistro.com", "Ana", "Lee", "abc123")

        response = anon.get("/tables", headers={"token": token})
        assert response.status_code == 401
        assert response.json() == {"error": "An error occurred - Token is expired"}

    def test_refresh_token_is_not_a_session_token(self, anon, token_service):
        _, refresh_token = token_service.generate_all_tokens("a@bistro.com", "Ana", "Lee", "abc123")

        response = anon.get("/menus", headers={"token": refresh_token})
        assert response.status_code == 401
        assert response.json() == {
            "error": "An error occurred - refresh token cannot be used as a session token"
        }

    def test_valid_token(self, api):
        assert api.get("/tables").status_code == 200

    def test_user_routes_are_public(self, anon):
        assert anon.get("/users").status_code == 200
        assert anon.get("/").json()["status"] == "ok"
