"""HTTP API tests against the in-memory backend"""

from app.services.auto_reply import CONCIERGE_FALLBACK


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["backend"] == "memory"


def test_every_feature_router_is_mounted(client):
    paths = {route.path for route in client.app.routes}

    for prefix in (
        "auth", "users", "catalog", "requests", "referrals",
        "notifications", "announcements", "testimonials", "chat",
    ):
        assert any(path.startswith(f"/api/v1/{prefix}") for path in paths), prefix


class TestAuthAPI:

    def test_register_and_me(self, client, register):
        user, headers = register()

        assert user["name"] == "Ada"
        assert user["totalSpent"] == 0
        assert user["isVip"] is False

        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["id"] == user["id"]

    def test_duplicate_email(self, client, register):
        register()
        response = client.post(
            "/api/v1/auth/register",
            json={"name": "Ada", "email": "ada@example.com", "password": "secret123"},
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE_ACCOUNT"

    def test_bad_credentials(self, client, register):
        register()
        response = client.post("/api/v1/auth/login", json={"email": "ada@example.com", "password": "nope"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTHENTICATION_FAILED"

    def test_login_returns_session(self, client, register):
        register()
        response = client.post("/api/v1/auth/login", json={"email": "ada@example.com", "password": "secret123"})

        assert response.status_code == 200
        token = response.json()["accessToken"]
        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["email"] == "ada@example.com"

    def test_missing_token(self, client):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_logout(self, client, register):
        _, headers = register()

        assert client.post("/api/v1/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/v1/auth/me", headers=headers).status_code == 401

    def test_admin_wrong_pin(self, client):
        response = client.post("/api/v1/auth/admin/login", json={"email": "boss@example.com", "pin": "999999"})
        assert response.status_code == 401


class TestApprovalFlow:

    def test_payment_for_service_with_room_service(self, client, register, admin_headers):
        _, headers = register()

        response = client.post(
            "/api/v1/requests/payments",
            json={"serviceId": "1", "roomService": True},
            headers=headers,
        )

        assert response.status_code == 201
        request = response.json()
        assert request["amount"] == 1500
        assert request["serviceName"] == "Signature Fade (Room Service)"
        assert request["status"] == "pending"

        decision = client.post(f"/api/v1/requests/{request['id']}/approve", headers=admin_headers)

        assert decision.status_code == 200
        assert decision.json()["request"]["status"] == "approved"
        assert decision.json()["user"]["totalSpent"] == 1500
        assert client.get("/api/v1/auth/me", headers=headers).json()["totalSpent"] == 1500

        again = client.post(f"/api/v1/requests/{request['id']}/approve", headers=admin_headers)
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "INVALID_STATUS_TRANSITION"

    def test_clients_cannot_decide(self, client, register):
        _, headers = register()
        request = client.post("/api/v1/requests/payments", json={"amount": 800}, headers=headers).json()

        response = client.post(f"/api/v1/requests/{request['id']}/approve", headers=headers)

        assert response.status_code == 403

    def test_payment_needs_service_or_amount(self, client, register):
        _, headers = register()
        response = client.post("/api/v1/requests/payments", json={"comment": "paid"}, headers=headers)
        assert response.status_code == 422

    def test_status_filter_and_my_requests(self, client, register, admin_headers):
        _, headers = register()
        client.post("/api/v1/requests/vip", json={}, headers=headers)
        payment = client.post("/api/v1/requests/payments", json={"amount": 800}, headers=headers).json()
        client.post(f"/api/v1/requests/{payment['id']}/reject", headers=admin_headers)

        pending = client.get("/api/v1/requests/", params={"status": "pending"}, headers=admin_headers).json()
        mine = client.get("/api/v1/requests/mine", headers=headers).json()

        assert [r["type"] for r in pending] == ["vip"]
        assert len(mine) == 2

    def test_referral_confirmation(self, client, register, admin_headers):
        user, headers = register()
        referral = client.post("/api/v1/referrals/", json={"friendName": "Bo"}, headers=headers).json()

        response = client.post(f"/api/v1/referrals/{referral['id']}/confirm", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["referral"]["status"] == "completed"
        assert response.json()["user"]["referralCount"] == 1
        assert client.get("/api/v1/referrals/mine", headers=headers).json()[0]["status"] == "completed"


class TestSocialAPI:

    def test_broadcast_feed_and_like(self, client, register, admin_headers):
        _, headers = register()
        response = client.post(
            "/api/v1/notifications/broadcast",
            json={"title": "New Hours", "message": "Open till 10pm"},
            headers=admin_headers,
        )
        assert response.status_code == 201

        feed = client.get("/api/v1/notifications/", headers=headers).json()
        assert feed[0]["title"] == "New Hours"

        announcement = client.get("/api/v1/announcements/", headers=headers).json()[0]
        assert announcement["type"] == "news"

        liked = client.post(f"/api/v1/announcements/{announcement['id']}/like", headers=headers).json()
        assert liked["likes"] == 1

    def test_testimonial_and_comment(self, client, register):
        _, headers = register()
        testimonial = client.post(
            "/api/v1/testimonials/",
            json={"content": "Cleanest lineup ever", "rating": 5},
            headers=headers,
        ).json()

        response = client.post(
            f"/api/v1/testimonials/{testimonial['id']}/comments",
            json={"text": "Facts"},
            headers=headers,
        )

        assert response.status_code == 201
        assert response.json()["comments"][0]["userName"] == "Ada"

    def test_rating_out_of_range(self, client, register):
        _, headers = register()
        response = client.post("/api/v1/testimonials/", json={"content": "ok", "rating": 0}, headers=headers)
        assert response.status_code == 422


class TestChatAPI:

    def test_client_thread_with_concierge_reply(self, client, register, admin_headers):
        user, headers = register()

        response = client.post("/api/v1/chat/me/messages", json={"text": "Hi"}, headers=headers)

        assert response.status_code == 201
        assert response.json()["unreadCount"] == 1

        thread = client.get("/api/v1/chat/me", headers=headers).json()
        assert [m["text"] for m in thread["messages"]] == ["Hi", CONCIERGE_FALLBACK]
        assert thread["messages"][1]["isAi"] is True

        conversations = client.get("/api/v1/chat/conversations", headers=admin_headers).json()
        assert conversations[0]["userId"] == user["id"]

        read = client.post(f"/api/v1/chat/conversations/{user['id']}/read", headers=admin_headers)
        assert read.json()["unreadCount"] == 0

    def test_admin_message(self, client, register, admin_headers):
        user, headers = register()

        response = client.post(
            f"/api/v1/chat/conversations/{user['id']}/messages",
            json={"text": "Your slot is confirmed"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["messages"][0]["senderName"] == "Manager"
        assert client.get("/api/v1/chat/me", headers=headers).json()["unreadCount"] == 0


class TestUsersAPI:

    def test_profile_update(self, client, register):
        _, headers = register()

        response = client.patch("/api/v1/users/me", json={"name": "Ada Lovelace"}, headers=headers)

        assert response.status_code == 200
        assert response.json()["name"] == "Ada Lovelace"

    def test_admin_listing_and_stats(self, client, register, admin_headers):
        register()
        register(name="Bo", email="bo@example.com")

        found = client.get("/api/v1/users/", params={"q": "bo"}, headers=admin_headers).json()
        stats = client.get("/api/v1/users/stats", headers=admin_headers).json()

        assert [u["name"] for u in found] == ["Bo"]
        assert stats["totalClients"] == 2

    def test_catalog(self, client, register):
        _, headers = register()

        services = client.get("/api/v1/catalog/services").json()
        booking = client.post("/api/v1/catalog/book", json={"serviceId": "3", "roomService": True}, headers=headers)

        assert len(services) == 5
        assert booking.json()["amount"] == 1000
