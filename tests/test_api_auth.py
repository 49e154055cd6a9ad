"""
Tutorium Backend — Auth, Profile, Admin and Health Endpoint Tests
===================================================================

What:  End-to-end tests over HTTP for /api/auth, /api/users, /api/admin,
       /health and /api/status, including the shared error envelope.
How:   `client` talks to a fresh app over ASGITransport; each test has its
       own SQLite database.
"""

import pytest

from tutorium.models import Role, User

DEFAULT_PASSWORD = "password123"


class TestRegisterAndLogin:

    @pytest.mark.asyncio
    async def test_register_returns_user_and_token(self, client):
        response = await client.post(
            "/api/auth/register",
            json={"name": "Anna Petrova", "email": "Anna@Example.com", "password": "secret123"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "User created successfully"
        assert body["token"]
        assert body["user"]["email"] == "anna@example.com"
        assert body["user"]["role"] == "TEACHER"
        assert body["user"]["first_name"] == "Anna"
        assert body["user"]["last_name"] == "Petrova"
        assert "password_hash" not in body["user"]

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client, factory):
        """Email uniqueness ignores case."""
        await factory.user(Role.STUDENT, email="taken@example.com")
        response = await client.post(
            "/api/auth/register",
            json={"name": "Copy", "email": "TAKEN@example.com", "password": "secret123"},
        )
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_register_unknown_role(self, client):
        response = await client.post(
            "/api/auth/register",
            json={"name": "X", "email": "x@example.com", "password": "secret123", "role": "JANITOR"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_register_short_password_is_schema_error(self, client):
        response = await client.post(
            "/api/auth/register",
            json={"name": "X", "email": "x@example.com", "password": "123"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_login_sets_cookie_that_authenticates(self, client, factory):
        """The httpOnly cookie alone is enough for later requests."""
        user = await factory.user(Role.STUDENT, email="elena@example.com")

        response = await client.post(
            "/api/auth/login", json={"email": "elena@example.com", "password": DEFAULT_PASSWORD}
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Login successful"
        set_cookie = response.headers["set-cookie"].lower()
        assert "token=" in set_cookie
        assert "httponly" in set_cookie

        profile = await client.get("/api/users/profile")
        assert profile.status_code == 200
        assert profile.json()["id"] == str(user.id)

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client, factory):
        await factory.user(Role.TEACHER, email="t@example.com")
        response = await client.post(
            "/api/auth/login", json={"email": "t@example.com", "password": "nope-nope"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_login_unknown_email_looks_the_same(self, client):
        response = await client.post(
            "/api/auth/login", json={"email": "ghost@example.com", "password": DEFAULT_PASSWORD}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_login_deactivated_account(self, client, factory):
        await factory.user(Role.TEACHER, email="gone@example.com", is_active=False)
        response = await client.post(
            "/api/auth/login", json={"email": "gone@example.com", "password": DEFAULT_PASSWORD}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, client):
        response = await client.post("/api/auth/logout")
        assert response.status_code == 200
        assert response.json() == {"message": "Logout successful"}
        assert "token=" in response.headers["set-cookie"]


class TestAuthenticationErrors:

    @pytest.mark.asyncio
    async def test_missing_token_error_envelope(self, client):
        """401s use the shared error envelope and advertise Bearer auth."""
        response = await client.get("/api/users/profile")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        body = response.json()
        assert body["error"] == "authentication_required"
        assert body["message"] == "Authentication required"
        assert set(body) == {"error", "message", "details", "request_id"}
        assert body["request_id"] == response.headers["x-request-id"]

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        response = await client.get(
            "/api/users/profile", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_token_of_deleted_user(self, client, factory):
        """Tokens stop working as soon as the account is gone."""
        user = await factory.user(Role.TEACHER)
        headers = factory.headers(user)
        async with factory._session_factory() as session:
            await session.delete(await session.get(User, user.id))
            await session.commit()

        response = await client.get("/api/users/profile", headers=headers)
        assert response.status_code == 401


class TestProfile:

    @pytest.mark.asyncio
    async def test_update_profile(self, client, factory):
        user = await factory.user(Role.STUDENT, level="A1")
        response = await client.put(
            "/api/users/update",
            headers=factory.headers(user),
            json={
                "first_name": "Maria",
                "last_name": "Ivanova",
                "email": "maria@example.com",
                "level": "Средний",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Profile updated successfully"
        assert body["user"]["name"] == "Maria Ivanova"
        assert body["user"]["email"] == "maria@example.com"
        assert body["user"]["level"] == "B1"

    @pytest.mark.asyncio
    async def test_update_profile_email_taken(self, client, factory):
        await factory.user(Role.STUDENT, email="first@example.com")
        user = await factory.user(Role.STUDENT)
        response = await client.put(
            "/api/users/update",
            headers=factory.headers(user),
            json={"first_name": "A", "last_name": "B", "email": "first@example.com"},
        )
        assert response.status_code == 400


class TestAdminUsers:

    @pytest.mark.asyncio
    async def test_create_user_returns_generated_password(self, client, factory):
        """The generated password is shown once and actually works."""
        admin = await factory.user(Role.ADMIN)
        response = await client.post(
            "/api/admin/users",
            headers=factory.headers(admin),
            json={"name": "New Teacher", "email": "new.teacher@example.com", "role": "TEACHER"},
        )

        assert response.status_code == 201
        body = response.json()
        assert len(body["default_password"]) == 12
        assert body["total_feedbacks"] == 0
        assert body["average_rating"] is None

        login = await client.post(
            "/api/auth/login",
            json={"email": "new.teacher@example.com", "password": body["default_password"]},
        )
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_create_user_duplicate_email(self, client, factory):
        admin = await factory.user(Role.ADMIN, email="boss@example.com")
        response = await client.post(
            "/api/admin/users",
            headers=factory.headers(admin),
            json={"name": "Copy", "email": "boss@example.com", "role": "STUDENT"},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_list_users_requires_admin(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        response = await client.get("/api/admin/users", headers=factory.headers(teacher))
        assert response.status_code == 403
        assert response.json()["error"] == "permission_denied"

    @pytest.mark.asyncio
    async def test_update_user_courses_and_group(self, client, factory):
        admin = await factory.user(Role.ADMIN)
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course()
        group = await factory.group(teacher, course)
        student = await factory.user(Role.STUDENT)

        response = await client.put(
            f"/api/admin/users/{student.id}",
            headers=factory.headers(admin),
            json={
                "first_name": "Dmitry",
                "last_name": "Kozlov",
                "group_id": str(group.id),
                "course_ids": [str(course.id)],
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Dmitry Kozlov"
        assert body["group"]["id"] == str(group.id)
        assert [c["id"] for c in body["enrolled_courses"]] == [str(course.id)]

    @pytest.mark.asyncio
    async def test_update_user_unknown_course(self, client, factory):
        admin = await factory.user(Role.ADMIN)
        student = await factory.user(Role.STUDENT)
        response = await client.put(
            f"/api/admin/users/{student.id}",
            headers=factory.headers(admin),
            json={"course_ids": ["00000000-0000-0000-0000-000000000000"]},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_cannot_delete_last_admin(self, client, factory):
        admin = await factory.user(Role.ADMIN)
        response = await client.delete(f"/api/admin/users/{admin.id}", headers=factory.headers(admin))
        assert response.status_code == 400
        assert "last admin" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_cannot_delete_teacher_with_groups(self, client, factory):
        admin = await factory.user(Role.ADMIN)
        teacher = await factory.user(Role.TEACHER)
        await factory.group(teacher)
        response = await client.delete(f"/api/admin/users/{teacher.id}", headers=factory.headers(admin))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_student(self, client, factory):
        admin = await factory.user(Role.ADMIN)
        student = await factory.user(Role.STUDENT)

        response = await client.delete(f"/api/admin/users/{student.id}", headers=factory.headers(admin))
        assert response.status_code == 200
        assert response.json() == {"message": "User deleted successfully"}
        assert await factory.refresh(User, student.id) is None

    @pytest.mark.asyncio
    async def test_delete_unknown_user(self, client, factory):
        admin = await factory.user(Role.ADMIN)
        response = await client.delete(
            "/api/admin/users/00000000-0000-0000-0000-000000000000", headers=factory.headers(admin)
        )
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_status(self, client):
        response = await client.get("/api/status")
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Backend is working!"
        assert body["environment"] == "test"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client):
        response = await client.get("/api/status", headers={"X-Request-ID": "abc12345"})
        assert response.headers["x-request-id"] == "abc12345"
