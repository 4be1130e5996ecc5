import pytest
from fastapi import status

@pytest.fixture
def test_user_data():
    return {
        "username": "testuser",
        "email": "test@example.com",
        "password": "testpassword123",
        "bio": "Test user bio"
    }

def login(client, username, password):
    return client.post("/api/users/login", json={"username": username, "password": password})

class TestUserRegistration:
    def test_successful_registration(self, client, test_user_data):
        response = client.post("/api/users/register", json=test_user_data)
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["username"] == test_user_data["username"]
        assert data["email"] == test_user_data["email"]
        assert data["role"] == "user"
        assert data["is_active"] is True
        assert "id" in data
        assert "password_hash" not in data

    def test_duplicate_username(self, client, test_user_data):
        client.post("/api/users/register", json=test_user_data)
        test_user_data["email"] = "other@example.com"
        response = client.post("/api/users/register", json=test_user_data)
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["detail"] == "Username already exists"

    def test_duplicate_email(self, client, test_user_data):
        client.post("/api/users/register", json=test_user_data)
        test_user_data["username"] = "otheruser"
        response = client.post("/api/users/register", json=test_user_data)
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["detail"] == "Email already registered"

    def test_invalid_email(self, client, test_user_data):
        test_user_data["email"] = "invalid-email"
        response = client.post("/api/users/register", json=test_user_data)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_password_too_short(self, client, test_user_data):
        test_user_data["password"] = "short"
        response = client.post("/api/users/register", json=test_user_data)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_username_with_symbols(self, client, test_user_data):
        test_user_data["username"] = "bad name!"
        response = client.post("/api/users/register", json=test_user_data)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

class TestUserLogin:
    def test_successful_login(self, client, test_user_data):
        client.post("/api/users/register", json=test_user_data)
        response = login(client, test_user_data["username"], test_user_data["password"])
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert "access_token" in data
        assert data["token_type"] == "bearer"

    def test_invalid_credentials(self, client, test_user_data):
        client.post("/api/users/register", json=test_user_data)
        response = login(client, test_user_data["username"], "wrongpassword")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["www-authenticate"] == "Bearer"

    def test_unknown_user(self, client):
        response = login(client, "nobody", "password123")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_records_last_login(self, client, test_user_data):
        client.post("/api/users/register", json=test_user_data)
        token = login(client, test_user_data["username"], test_user_data["password"]).json()["access_token"]
        response = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
        assert response.json()["last_login"] is not None

class TestUserProfile:
    def test_get_own_profile(self, authenticated_client):
        response = authenticated_client.get("/api/users/me")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["username"] == "author"
        assert data["email"] == "author@example.com"

    def test_update_profile(self, authenticated_client):
        response = authenticated_client.put("/api/users/me", json={
            "bio": "Updated bio",
            "profile_image": "https://example.com/me.png",
        })
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["bio"] == "Updated bio"
        assert data["profile_image"] == "https://example.com/me.png"
        assert data["full_name"] == "Author"

    def test_change_password(self, client, authenticated_client):
        response = authenticated_client.put("/api/users/me/password", json={
            "current_password": "password123",
            "new_password": "newpassword456",
        })
        assert response.status_code == status.HTTP_200_OK
        assert login(client, "author", "password123").status_code == status.HTTP_401_UNAUTHORIZED
        assert login(client, "author", "newpassword456").status_code == status.HTTP_200_OK

    def test_change_password_wrong_current(self, authenticated_client):
        response = authenticated_client.put("/api/users/me/password", json={
            "current_password": "not-my-password",
            "new_password": "newpassword456",
        })
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Current password is incorrect"

    def test_unauthorized_access(self, client):
        response = client.get("/api/users/me")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_invalid_token(self, client):
        response = client.get("/api/users/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

class TestInactiveUser:
    def test_deactivated_user_is_refused(self, client, admin_client, register_user):
        reader = register_user("reader")
        response = admin_client.post(f"/api/admin/users/{reader.user_id}:toggleStatus")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["is_active"] is False

        response = reader.get("/api/users/me")
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Inactive user"
        assert login(client, "reader", "password123").status_code == status.HTTP_403_FORBIDDEN
