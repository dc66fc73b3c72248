"""
API端点测试 (FastAPI TestClient)
"""
import pytest
from fastapi.testclient import TestClient

from app.api import deps
from app.main import create_app


@pytest.fixture
def client(session_factory):
    app = create_app(run_startup=False)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[deps.get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


def signup_and_login(client, email, password="secret123"):
    response = client.post("/api/auth/signup", json={"email": email, "password": password, "name": email})
    assert response.status_code == 201, response.text
    user_id = response.json()["id"]

    response = client.post("/api/auth/login/json", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]
    return user_id, {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client):
    return signup_and_login(client, "alice@example.com")


@pytest.fixture
def bob(client):
    return signup_and_login(client, "bob@example.com")


class TestAuth:
    """测试注册、登录与会话"""

    def test_duplicate_signup(self, client, alice):
        response = client.post("/api/auth/signup", json={"email": "alice@example.com", "password": "another1"})
        assert response.status_code == 400

    def test_wrong_password(self, client, alice):
        response = client.post("/api/auth/login/json", json={"email": "alice@example.com", "password": "nope"})
        assert response.status_code == 401

    def test_form_login(self, client, alice):
        response = client.post("/api/auth/login", data={"username": "alice@example.com", "password": "secret123"})
        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"

    def test_session(self, client, alice):
        user_id, headers = alice
        assert client.get("/api/auth/session").json() == {"user": None}
        session = client.get("/api/auth/session", headers=headers).json()
        assert session["user"]["id"] == user_id
        assert session["user"]["email"] == "alice@example.com"

    def test_logout_revokes_token(self, client, alice):
        _, headers = alice
        assert client.post("/api/auth/logout", headers=headers).status_code == 204
        assert client.get("/api/auth/me", headers=headers).status_code == 401
        assert client.get("/api/auth/session", headers=headers).json() == {"user": None}

    def test_protected_route_requires_token(self, client):
        assert client.get("/api/dashboards/").status_code == 401


class TestDashboardsApi:
    """测试 Dashboard 端点与错误映射"""

    def create_dashboard(self, client, headers, **body):
        payload = {"name": "Sales", "layout": {"widgets": [], "variables": []}, "permissions": []}
        payload.update(body)
        return client.post("/api/dashboards/", json=payload, headers=headers)

    def test_create_and_get(self, client, alice):
        _, headers = alice
        response = self.create_dashboard(client, headers, layout={"widgets": [{
            "id": "w1", "type": "pie", "dataSource": {"databaseId": "dummy", "query": "SELECT * FROM dummyData"},
        }]})
        assert response.status_code == 201, response.text
        dashboard = response.json()

        response = client.get(f"/api/dashboards/{dashboard['id']}", headers=headers)
        assert response.status_code == 200
        assert response.json()["layout"]["widgets"][0]["dataSource"]["databaseId"] == "dummy"
        assert response.json()["can_edit"] is True

    def test_access_denied_is_403(self, client, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        dashboard = self.create_dashboard(client, alice_headers).json()

        response = client.get(f"/api/dashboards/{dashboard['id']}", headers=bob_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "AccessDenied"

    def test_shared_view(self, client, alice, bob):
        _, alice_headers = alice
        bob_id, bob_headers = bob
        dashboard = self.create_dashboard(client, alice_headers, permissions=[
            {"entity_type": "user", "entity_id": bob_id, "permission": "view"},
        ]).json()

        assert client.get(f"/api/dashboards/{dashboard['id']}", headers=bob_headers).status_code == 200
        response = client.put(
            f"/api/dashboards/{dashboard['id']}", json={"name": "Hijacked"}, headers=bob_headers
        )
        assert response.status_code == 403

        listed = client.get("/api/dashboards/", params={"scope": "shared"}, headers=bob_headers).json()
        assert [d["id"] for d in listed] == [dashboard["id"]]

    def test_missing_dashboard_is_404(self, client, alice):
        _, headers = alice
        response = client.get("/api/dashboards/404", headers=headers)
        assert response.status_code == 404
        assert response.json()["error"] == "ResourceNotFound"

    def test_validation_error_is_422(self, client, alice):
        _, headers = alice
        response = self.create_dashboard(client, headers, layout={"variables": [{"name": "bad-name"}]})
        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"

    def test_render_and_favorite(self, client, alice):
        _, headers = alice
        dashboard = self.create_dashboard(client, headers, layout={"widgets": [
            {"id": "t1", "type": "text", "config": {"content": "Hello"}},
            {"id": "r1", "type": "radar"},
        ]}).json()

        rendered = client.post(f"/api/dashboards/{dashboard['id']}/render", json={}, headers=headers).json()
        assert rendered["widgets"]["t1"]["state"] == "ready"
        assert rendered["widgets"]["r1"]["state"] == "unsupported"

        favorite = client.post(f"/api/dashboards/{dashboard['id']}/favorite", headers=headers).json()
        assert favorite == {"dashboard_id": dashboard["id"], "is_favorite": True}
        assert client.get("/api/favorites/", headers=headers).json() == {"dashboard_ids": [dashboard["id"]]}

    def test_delete(self, client, alice):
        _, headers = alice
        dashboard = self.create_dashboard(client, headers).json()
        assert client.delete(f"/api/dashboards/{dashboard['id']}", headers=headers).status_code == 204
        assert client.get(f"/api/dashboards/{dashboard['id']}", headers=headers).status_code == 404


class TestTemplatesApi:
    def test_templates_are_seeded_and_instantiated(self, client, alice):
        _, headers = alice
        templates = client.get("/api/templates/", headers=headers).json()
        assert [t["name"] for t in templates] == ["Sales Dashboard", "Analytics Dashboard"]

        response = client.post(f"/api/templates/{templates[0]['id']}/instantiate", headers=headers)
        assert response.status_code == 201
        assert response.json()["name"] == "Sales Dashboard Copy"


class TestConnectionsApi:
    def test_dummy_schema_and_query(self, client, alice):
        _, headers = alice
        schema = client.get("/api/connections/dummy/schema", headers=headers).json()
        assert schema["tables"][0]["name"] == "dummyData"

        connection = client.post("/api/connections/", json={
            "name": "Demo", "type": "dummy", "config": {},
        }, headers=headers).json()
        response = client.post(
            f"/api/connections/{connection['id']}/query",
            json={"query": "SELECT * FROM dummyData"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json() == {"rows": [], "row_count": 0}


class TestGroupsApi:
    def test_group_members(self, client, alice, bob):
        _, headers = alice
        bob_id, _ = bob
        group = client.post("/api/groups/", json={"name": "sales"}, headers=headers).json()

        response = client.post(f"/api/groups/{group['id']}/members", json={"user_id": bob_id}, headers=headers)
        assert response.status_code == 201

        members = client.get(f"/api/groups/{group['id']}/members", headers=headers).json()
        assert [m["user_id"] for m in members["members"]] == [bob_id]
