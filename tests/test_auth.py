import pytest

from tests.conftest import ADMIN, CUSTOMER, INACTIVE, bearer, login

NEW_USER = {
    "email": "new.shopper@modishcarts.com",
    "password": "supersecret1",
    "firstName": "New",
    "lastName": "Shopper",
}


class TestRegister:
    def test_register_creates_user(self, client):
        response = client.post("/api/auth/register", json=NEW_USER)

        assert response.status_code == 201
        body = response.get_json()
        assert body["success"] is True
        assert "registered successfully" in body["message"]
        assert body["user"]["email"] == NEW_USER["email"]
        assert body["user"]["firstName"] == "New"
        assert body["user"]["isAdmin"] is False
        assert "password" not in body["user"]
        assert "passwordHash" not in body["user"]

    def test_duplicate_email_is_conflict(self, client):
        client.post("/api/auth/register", json=NEW_USER)

        response = client.post("/api/auth/register", json={**NEW_USER, "email": "NEW.Shopper@ModishCarts.com"})

        assert response.status_code == 409
        assert "email already exists" in response.get_json()["error"]

    def test_short_password_is_rejected(self, client):
        response = client.post("/api/auth/register", json={**NEW_USER, "password": "short"})

        assert response.status_code == 400
        assert "password" in response.get_json()["error"]

    @pytest.mark.parametrize("missing", ["email", "firstName", "lastName"])
    def test_missing_field_is_named(self, client, missing):
        payload = {k: v for k, v in NEW_USER.items() if k != missing}

        response = client.post("/api/auth/register", json=payload)

        assert response.status_code == 400
        assert missing in response.get_json()["error"]


class TestLogin:
    def test_login_returns_tokens_and_user(self, client):
        body = login(client, *CUSTOMER)

        assert body["success"] is True
        assert body["token"]
        assert body["refreshToken"]
        assert body["expiresAt"]
        assert body["user"]["email"] == CUSTOMER[0]

    def test_wrong_password(self, client):
        response = client.post("/api/auth/login", json={"email": CUSTOMER[0], "password": "nope"})

        assert response.status_code == 401
        assert "Invalid credentials" in response.get_json()["error"]

    def test_unknown_email(self, client):
        response = client.post("/api/auth/login", json={"email": "ghost@modishcarts.com", "password": "x"})

        assert response.status_code == 401
        assert "Invalid credentials" in response.get_json()["error"]

    def test_invalid_email_format(self, client):
        response = client.post("/api/auth/login", json={"email": "not-an-email", "password": "x"})

        assert response.status_code == 400
        assert "email" in response.get_json()["error"]

    def test_disabled_account(self, client):
        response = client.post("/api/auth/login", json={"email": INACTIVE[0], "password": INACTIVE[1]})

        assert response.status_code == 401
        assert "account is disabled" in response.get_json()["error"]

    def test_login_merges_guest_cart(self, client, seeded):
        camera = seeded["products"]["SHSC-001"]
        client.post("/api/cart", json={"productId": camera, "quantity": 1, "sessionId": "guest-abc"})

        body = client.post(
            "/api/auth/login",
            json={"email": CUSTOMER[0], "password": CUSTOMER[1], "sessionId": "guest-abc"},
        ).get_json()

        cart = client.get("/api/cart", headers=bearer(body["token"])).get_json()
        product_ids = {item["productId"] for item in cart["items"]}
        assert camera in product_ids
        guest_cart = client.get("/api/cart?sessionId=guest-abc").get_json()
        assert guest_cart["items"] == []


class TestRefresh:
    def test_refresh_issues_new_pair(self, client):
        tokens = login(client, *CUSTOMER)

        response = client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]})

        assert response.status_code == 200
        body = response.get_json()
        assert body["token"]
        assert body["refreshToken"]

    def test_access_token_is_not_a_refresh_token(self, client):
        tokens = login(client, *CUSTOMER)

        response = client.post("/api/auth/refresh", json={"refreshToken": tokens["token"]})

        assert response.status_code == 401
        assert "Invalid refresh token" in response.get_json()["error"]

    def test_garbage_refresh_token(self, client):
        response = client.post("/api/auth/refresh", json={"refreshToken": "not.a.jwt"})

        assert response.status_code == 401
        assert "Invalid refresh token" in response.get_json()["error"]


class TestPasswordReset:
    def test_forgot_password_does_not_reveal_accounts(self, client):
        known = client.post("/api/auth/forgot-password", json={"email": CUSTOMER[0]})
        unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@modishcarts.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.get_json()["message"] == unknown.get_json()["message"]
        assert "reset token sent" in known.get_json()["message"]
        assert "resetToken" not in unknown.get_json()

    def test_reset_flow(self, client):
        client.post("/api/auth/register", json=NEW_USER)
        reset_token = client.post(
            "/api/auth/forgot-password", json={"email": NEW_USER["email"]}
        ).get_json()["resetToken"]

        response = client.post(
            "/api/auth/reset-password", json={"token": reset_token, "password": "brandnewpass1"}
        )

        assert response.status_code == 200
        assert response.get_json()["success"] is True
        failed = client.post(
            "/api/auth/login", json={"email": NEW_USER["email"], "password": NEW_USER["password"]}
        )
        assert failed.status_code == 401
        assert login(client, NEW_USER["email"], "brandnewpass1")["user"]["email"] == NEW_USER["email"]

    def test_reset_revokes_tokens_issued_just_before(self, client):
        old = login(client, CUSTOMER[0], CUSTOMER[1])
        reset_token = client.post(
            "/api/auth/forgot-password", json={"email": CUSTOMER[0]}
        ).get_json()["resetToken"]
        assert client.post(
            "/api/auth/reset-password", json={"token": reset_token, "password": "freshpassword9"}
        ).status_code == 200

        profile = client.get("/api/auth/profile", headers=bearer(old["token"]))
        refreshed = client.post("/api/auth/refresh", json={"refreshToken": old["refreshToken"]})

        assert profile.status_code == 401
        assert refreshed.status_code == 401
        new = login(client, CUSTOMER[0], "freshpassword9")
        assert client.get("/api/auth/profile", headers=bearer(new["token"])).status_code == 200

    def test_reset_token_is_single_use(self, client):
        token = client.post(
            "/api/auth/forgot-password", json={"email": CUSTOMER[0]}
        ).get_json()["resetToken"]
        client.post("/api/auth/reset-password", json={"token": token, "password": "firstnewpass"})

        response = client.post("/api/auth/reset-password", json={"token": token, "password": "secondnewpass"})

        assert response.status_code == 400
        assert "Invalid or expired reset token" in response.get_json()["error"]

    def test_newer_request_invalidates_older_token(self, client):
        first = client.post("/api/auth/forgot-password", json={"email": CUSTOMER[0]}).get_json()["resetToken"]
        client.post("/api/auth/forgot-password", json={"email": CUSTOMER[0]})

        response = client.post("/api/auth/reset-password", json={"token": first, "password": "anotherpass1"})

        assert response.status_code == 400

    def test_unknown_reset_token(self, client):
        response = client.post(
            "/api/auth/reset-password", json={"token": "mock-reset-token", "password": "newpassword123"}
        )

        assert response.status_code == 400


class TestProfile:
    def test_get_profile(self, client, customer_headers):
        response = client.get("/api/auth/profile", headers=customer_headers)

        assert response.status_code == 200
        assert response.get_json()["user"]["email"] == CUSTOMER[0]

    def test_profile_requires_token(self, client):
        assert client.get("/api/auth/profile").status_code == 401

    def test_malformed_authorization_header(self, client):
        response = client.get("/api/auth/profile", headers={"Authorization": "Token abc"})

        assert response.status_code == 401

    def test_update_profile(self, client, customer_headers):
        response = client.put(
            "/api/auth/profile", headers=customer_headers, json={"firstName": "Updated", "phone": "+15550001111"}
        )

        assert response.status_code == 200
        user = response.get_json()["user"]
        assert user["firstName"] == "Updated"
        assert user["lastName"] == "User"
        assert user["phone"] == "+15550001111"

    def test_admin_flag_in_profile(self, client, admin_headers):
        user = client.get("/api/auth/profile", headers=admin_headers).get_json()["user"]

        assert user["email"] == ADMIN[0]
        assert user["isAdmin"] is True
