import pytest

from app.models.user import UserRole


@pytest.mark.api
class TestAuthApi:
    def test_register_and_login(self, client):
        response = client.post("/api/auth/register", json={
            "email": "jane@example.com",
            "name": "Jane Customer",
            "password": "Secret#123",
        })
        assert response.status_code == 201
        body = response.json()
        assert body["user"]["role"] == "NORMAL_USER"
        assert body["access_token"]

        response = client.post("/api/auth/login", json={"email": "jane@example.com", "password": "Secret#123"})
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = client.get("/api/users/profile/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == "jane@example.com"

    def test_register_duplicate_email(self, client, customer):
        response = client.post("/api/auth/register", json={
            "email": customer.email,
            "name": "Copy Cat",
            "password": "Secret#123",
        })
        assert response.status_code == 409

    def test_register_weak_password(self, client):
        response = client.post("/api/auth/register", json={
            "email": "weak@example.com",
            "name": "Weak Password",
            "password": "password1",
        })
        assert response.status_code == 422

    def test_login_wrong_password(self, client, customer):
        response = client.post("/api/auth/login", json={"email": customer.email, "password": "Wrong#123"})
        assert response.status_code == 401

    def test_refresh(self, client, customer):
        tokens = client.post("/api/auth/login", json={"email": customer.email, "password": "Secret#123"}).json()

        response = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == 200

        # An access token is not a refresh token
        response = client.post("/api/auth/refresh", json={"refresh_token": tokens["access_token"]})
        assert response.status_code == 401

    def test_update_password(self, client, customer, auth_headers):
        response = client.post(
            "/api/auth/update-password",
            json={"current_password": "Wrong#123", "new_password": "Brand#New1"},
            headers=auth_headers(customer),
        )
        assert response.status_code == 401

        response = client.post(
            "/api/auth/update-password",
            json={"current_password": "Secret#123", "new_password": "Brand#New1"},
            headers=auth_headers(customer),
        )
        assert response.status_code == 200

    def test_missing_token(self, client):
        assert client.get("/api/users/profile/me").status_code == 401


@pytest.mark.api
class TestUsersApi:
    def test_admin_only_listing(self, client, admin, customer, auth_headers):
        assert client.get("/api/users/", headers=auth_headers(customer)).status_code == 403

        response = client.get("/api/users/", headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json()["total"] == 2

    def test_profile_update_ignores_role(self, client, customer, auth_headers):
        response = client.put(
            "/api/users/profile/me",
            json={"name": "Promoted Maybe", "role": "SYSTEM_ADMIN", "password": "Hacked#999"},
            headers=auth_headers(customer),
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Promoted Maybe"
        assert response.json()["role"] == "NORMAL_USER"

    def test_admin_creates_and_deletes_owner(self, client, admin, auth_headers):
        response = client.post("/api/users/", json={
            "email": "shopkeeper@example.com",
            "name": "Shop Keeper",
            "password": "Secret#123",
            "role": "STORE_OWNER",
        }, headers=auth_headers(admin))
        assert response.status_code == 201
        user_id = response.json()["id"]

        stats = client.get("/api/users/stats", headers=auth_headers(admin)).json()
        assert stats["by_role"]["STORE_OWNER"] == 1

        assert client.delete(f"/api/users/{user_id}", headers=auth_headers(admin)).status_code == 200
        assert client.get(f"/api/users/{user_id}", headers=auth_headers(admin)).status_code == 404


@pytest.mark.api
class TestStoresAndRatingsApi:
    def test_normal_user_cannot_create_store(self, client, customer, auth_headers):
        response = client.post(
            "/api/stores/",
            json={"name": "Sneaky Shop", "address": "1 Side Street"},
            headers=auth_headers(customer),
        )
        assert response.status_code == 403

    def test_store_name_validation(self, client, owner, auth_headers):
        response = client.post(
            "/api/stores/",
            json={"name": "abc", "address": "1 Side Street"},
            headers=auth_headers(owner),
        )
        assert response.status_code == 422

    def test_store_listing_is_public_and_searchable(self, client, owner, make_store):
        make_store(owner, name="Green Grocer")
        make_store(owner, name="Book Nook")

        response = client.get("/api/stores/", params={"search": "book"})
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["name"] == "Book Nook"
        assert body["items"][0]["owner_name"] == owner.name

    def test_rating_value_outside_enumeration(self, client, owner, customer, make_store, auth_headers):
        store = make_store(owner)

        response = client.post(
            "/api/ratings/",
            json={"store_id": store.id, "rating_value": "6"},
            headers=auth_headers(customer),
        )
        assert response.status_code == 422

    def test_admin_stats_endpoints(self, client, admin, owner, customer, make_store, add_rating, auth_headers):
        store = make_store(owner)
        add_rating(customer, store, "5")
        add_rating(owner, store, "4")

        overall = client.get("/api/ratings/stats/overall", headers=auth_headers(admin))
        assert overall.status_code == 200
        assert overall.json() == {"total_ratings": 2, "average_rating": 4.5, "total_stores": 1, "total_users": 2}

        assert client.get("/api/ratings/stats/overall", headers=auth_headers(customer)).status_code == 403

        directory = client.get("/api/stores/stats", headers=auth_headers(admin)).json()
        assert directory == {"total": 1, "total_ratings": 2, "average_rating": 4.5}

    def test_owner_dashboard(self, client, owner, customer, make_store, add_rating, auth_headers):
        store = make_store(owner)
        add_rating(customer, store, "4")

        response = client.get("/api/stores/owner/my-stores", headers=auth_headers(owner))
        assert response.status_code == 200
        assert response.json()[0]["total_ratings"] == 1
        assert response.json()[0]["average_rating"] == 4.0

    def test_end_to_end_rating_flow(self, client, owner, make_user, make_store, auth_headers):
        u1 = make_user(UserRole.NORMAL_USER)
        u2 = make_user(UserRole.NORMAL_USER)
        s1 = make_store(owner)

        # U1 rates S1 with 4
        response = client.post(
            "/api/ratings/",
            json={"store_id": s1.id, "rating_value": "4"},
            headers=auth_headers(u1),
        )
        assert response.status_code == 201
        rating_id = response.json()["id"]

        stats = client.get(f"/api/ratings/store/{s1.id}/stats").json()
        assert stats["total_ratings"] == 1
        assert stats["average_rating"] == 4.0

        # A second rating of the same store is a conflict
        response = client.post(
            "/api/ratings/",
            json={"store_id": s1.id, "rating_value": 2},
            headers=auth_headers(u1),
        )
        assert response.status_code == 409

        # U1 changes the existing rating to 5
        response = client.put(
            f"/api/ratings/{rating_id}",
            json={"rating_value": "5"},
            headers=auth_headers(u1),
        )
        assert response.status_code == 200
        assert response.json()["rating_value"] == "5"

        stats = client.get(f"/api/ratings/store/{s1.id}/stats").json()
        assert stats == {
            "total_ratings": 1,
            "average_rating": 5.0,
            "distribution": {"1": 0, "2": 0, "3": 0, "4": 0, "5": 1},
        }

        # U2 neither owns the rating nor may delete the store
        response = client.delete(f"/api/ratings/{rating_id}", headers=auth_headers(u2))
        assert response.status_code == 403
        response = client.delete(f"/api/stores/{s1.id}", headers=auth_headers(u2))
        assert response.status_code == 403

        mine = client.get("/api/ratings/user/my-ratings", headers=auth_headers(u1)).json()
        assert [r["id"] for r in mine] == [rating_id]
        assert mine[0]["store"]["name"] == s1.name

    def test_store_owner_cannot_touch_other_owners_store(self, client, owner, make_user, make_store, auth_headers):
        store = make_store(owner)
        rival = make_user(UserRole.STORE_OWNER)

        response = client.put(
            f"/api/stores/{store.id}",
            json={"name": "Hostile Takeover"},
            headers=auth_headers(rival),
        )
        assert response.status_code == 403

        response = client.put(
            f"/api/stores/{store.id}",
            json={"name": "Renamed Store"},
            headers=auth_headers(owner),
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed Store"

    def test_missing_store_is_404(self, client):
        assert client.get("/api/stores/999").status_code == 404

    @pytest.mark.parametrize("params", [{"skip": -1}, {"limit": 0}, {"limit": 101}])
    def test_pagination_bounds(self, client, params):
        assert client.get("/api/stores/", params=params).status_code == 422

    def test_admin_listings_reject_negative_skip(self, client, admin, auth_headers):
        for path in ["/api/ratings/", "/api/users/"]:
            response = client.get(path, params={"skip": -5}, headers=auth_headers(admin))
            assert response.status_code == 422
