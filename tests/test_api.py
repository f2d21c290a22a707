"""
Tests for the v1 REST API: status codes, error bodies and pagination headers.
"""
import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from buildflow.main import app, get_db, status_code_for
from buildflow.models import Base
from buildflow.domain.exceptions import (
    DomainError,
    DtoMappingError,
    DuplicateEmailError,
    EstimateNotFoundError,
    InvariantViolationError,
    NotPersistedError,
    ValidationError,
)


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@pytest.fixture
def client():
    """Create test client with a fresh test database."""
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)


def _create_user(client, email, labels=None, **kwargs):
    response = client.post("/api/v1/users", json={
        "contact": {
            "first_name": "Api",
            "last_name": "User",
            "email": email,
            "labels": labels or [],
        },
        **kwargs,
    })
    assert response.status_code == 201, response.text
    return response.json()["user"]


@pytest.fixture
def builder(client):
    return _create_user(client, "builder@api.test", ["BUILDER"], registered=True)


@pytest.fixture
def owner(client):
    return _create_user(client, "owner@api.test", ["OWNER"])


@pytest.fixture
def work_item(client, builder):
    response = client.post("/api/v1/work-items", json={
        "code": "DRY-01",
        "name": "Drywall",
        "user_id": builder["id"],
    })
    assert response.status_code == 201, response.text
    return response.json()["work_item"]


@pytest.fixture
def project(client, builder, owner):
    response = client.post("/api/v1/projects", json={
        "builder_id": builder["id"],
        "owner_id": owner["id"],
        "location": {"city": "Calgary", "country": "CA"},
    })
    assert response.status_code == 201, response.text
    return response.json()


class TestStatusMapping:

    @pytest.mark.parametrize("error,expected", [
        (EstimateNotFoundError(uuid.uuid4()), 404),
        (DuplicateEmailError("x@y.z"), 409),
        (InvariantViolationError("rule", "a", "b"), 409),
        (NotPersistedError("Quote"), 400),
        (ValidationError("field", "bad"), 400),
        (DtoMappingError("bad dto"), 400),
        (DomainError("boom"), 500),
    ])
    def test_status_code_for(self, error, expected):
        assert status_code_for(error) == expected


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestUsersApi:

    def test_create_user(self, client):
        user = _create_user(client, "new@api.test", ["supplier", "SUPPLIER", "ghost"])
        assert user["username"] == "new@api.test"
        assert user["registered"] is False
        assert user["contact"]["labels"] == ["SUPPLIER"]

    def test_duplicate_user_conflict(self, client, builder):
        response = client.post("/api/v1/users", json={
            "contact": {"first_name": "Dup", "last_name": "Licate", "email": "builder@api.test"},
        })
        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_USER"

    def test_get_user_by_username(self, client, builder):
        response = client.get("/api/v1/users/builder@api.test")
        assert response.status_code == 200
        assert response.json()["id"] == builder["id"]

    def test_get_unknown_user(self, client):
        assert client.get("/api/v1/users/ghost").status_code == 404

    def test_list_and_delete(self, client, builder, owner):
        assert len(client.get("/api/v1/users").json()) == 2
        assert client.delete(f"/api/v1/users/{owner['id']}").status_code == 204
        assert len(client.get("/api/v1/users").json()) == 1


class TestWorkItemsApi:

    def test_blank_code_is_validation_error(self, client, builder):
        response = client.post("/api/v1/work-items", json={
            "code": "  ", "name": "Nothing", "user_id": builder["id"],
        })
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_unknown_user(self, client):
        response = client.post("/api/v1/work-items", json={
            "code": "A", "name": "B", "user_id": str(uuid.uuid4()),
        })
        assert response.status_code == 404
        assert response.json()["error"] == "USER_NOT_FOUND"

    def test_lookup_by_user_and_code(self, client, builder, work_item):
        response = client.get(f"/api/v1/work-items/user/{builder['id']}/code/DRY-01")
        assert response.status_code == 200
        assert response.json()["id"] == work_item["id"]

    def test_list_by_invalid_domain(self, client, work_item):
        assert client.get("/api/v1/work-items", params={"domain": "SECRET"}).status_code == 400

    def test_patch(self, client, work_item):
        response = client.patch(f"/api/v1/work-items/{work_item['id']}", json={
            "name": "Drywall, level 5 finish", "domain": "private",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Drywall, level 5 finish"
        assert body["domain"] == "PRIVATE"
        assert body["code"] == "DRY-01"


class TestProjectsApi:

    def test_create_and_get(self, client, project):
        response = client.get(f"/api/v1/projects/{project['id']}")
        assert response.status_code == 200
        assert response.json()["location"]["city"] == "Calgary"
        assert response.json()["estimate_count"] == 0

    def test_unknown_owner(self, client, builder):
        response = client.post("/api/v1/projects", json={
            "builder_id": builder["id"], "owner_id": str(uuid.uuid4()),
        })
        assert response.status_code == 404
        assert "Owner with ID" in response.json()["message"]

    def test_pagination_headers(self, client, builder, owner, project):
        client.post("/api/v1/projects", json={"builder_id": builder["id"], "owner_id": owner["id"]})
        response = client.get(f"/api/v1/projects/builder/{builder['id']}", params={"size": 1})
        assert response.status_code == 200
        assert len(response.json()) == 1
        assert response.headers["X-Total-Count"] == "2"
        assert response.headers["X-Total-Pages"] == "2"
        assert response.headers["X-Page"] == "0"
        assert response.headers["X-Size"] == "1"
        assert 'rel="next"' in response.headers["Link"]
        assert 'rel="prev"' not in response.headers["Link"]

    def test_combined_projects_by_scope(self, client, builder, owner, project):
        client.post("/api/v1/projects", json={"builder_id": owner["id"], "owner_id": builder["id"]})
        url = f"/api/v1/projects/user/{builder['id']}"

        response = client.get(url)
        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "2"

        response = client.get(url, params={"scope": "builder"})
        assert [p["id"] for p in response.json()] == [project["id"]]

        response = client.get(url, params={"scope": "owner", "size": 1})
        assert response.headers["X-Total-Count"] == "1"
        assert response.json()[0]["builder_id"] == owner["id"]

    def test_combined_projects_unknown_user(self, client):
        response = client.get(f"/api/v1/projects/user/{uuid.uuid4()}")
        assert response.status_code == 404


class TestParticipantsApi:

    def _contact(self, email, first_name="Pat"):
        return {"first_name": first_name, "last_name": "Partner", "email": email}

    def test_participant_workflow(self, client, project):
        base = f"/api/v1/projects/{project['id']}/participants"
        response = client.post(base, json={"role": "owner", "contact": self._contact("pat@api.test")})
        assert response.status_code == 201, response.text
        participant = response.json()
        assert participant["role"] == "OWNER"
        assert participant["project_id"] == project["id"]

        response = client.put(f"{base}/{participant['id']}", json={
            "role": "BUILDER", "contact": self._contact("pat@api.test", first_name="Patricia"),
        })
        assert response.status_code == 200, response.text
        assert response.json()["role"] == "BUILDER"
        assert response.json()["contact"]["id"] == participant["contact"]["id"]
        assert response.json()["contact"]["first_name"] == "Patricia"

        response = client.get(base)
        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "1"

        assert client.delete(f"{base}/{participant['id']}").status_code == 204
        assert client.get(f"{base}/{participant['id']}").status_code == 404

    def test_invalid_role(self, client, project):
        response = client.post(
            f"/api/v1/projects/{project['id']}/participants",
            json={"role": "LENDER", "contact": self._contact("lee@api.test")},
        )
        assert response.status_code == 400
        assert "Invalid role: LENDER" in response.json()["message"]

    def test_unknown_project(self, client):
        response = client.post(
            f"/api/v1/projects/{uuid.uuid4()}/participants",
            json={"role": "OWNER", "contact": self._contact("lee@api.test")},
        )
        assert response.status_code == 404
        assert response.json()["error"] == "PROJECT_NOT_FOUND"

    def test_participant_of_other_project(self, client, builder, owner, project):
        other = client.post("/api/v1/projects", json={"builder_id": builder["id"], "owner_id": owner["id"]}).json()
        participant = client.post(
            f"/api/v1/projects/{project['id']}/participants",
            json={"role": "OWNER", "contact": self._contact("pat@api.test")},
        ).json()
        response = client.get(f"/api/v1/projects/{other['id']}/participants/{participant['id']}")
        assert response.status_code == 400


class TestEstimatesApi:

    def test_estimate_workflow(self, client, project, work_item, builder):
        response = client.post("/api/v1/estimates", json={
            "project_id": project["id"], "overall_multiplier": 1.5,
        })
        assert response.status_code == 201
        estimate = response.json()

        group = client.post(f"/api/v1/estimates/{estimate['id']}/groups", json={"name": "Interior"}).json()
        client.post("/api/v1/quotes", json={
            "work_item_id": work_item["id"],
            "created_by_id": builder["id"],
            "supplier_id": builder["id"],
            "unit": "SQUARE_FOOT",
            "unit_price": "2.00",
        })
        line = client.post(f"/api/v1/estimates/groups/{group['id']}/lines", json={
            "work_item_id": work_item["id"], "quantity": 100,
        }).json()
        assert Decimal(str(line["computed_cost"])) == Decimal("300.00")

        body = client.get(f"/api/v1/estimates/{estimate['id']}").json()
        assert body["groups"][0]["lines"][0]["id"] == line["id"]

        assert client.delete(f"/api/v1/estimates/groups/{group['id']}").status_code == 204
        body = client.get(f"/api/v1/estimates/{estimate['id']}").json()
        assert body["groups"] == []

    def test_unknown_estimate(self, client):
        response = client.get(f"/api/v1/estimates/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["error"] == "ESTIMATE_NOT_FOUND"

    def test_negative_quantity_rejected_by_request_model(self, client, project, work_item):
        estimate = client.post("/api/v1/estimates", json={"project_id": project["id"]}).json()
        group = client.post(f"/api/v1/estimates/{estimate['id']}/groups", json={"name": "G"}).json()
        response = client.post(f"/api/v1/estimates/groups/{group['id']}/lines", json={
            "work_item_id": work_item["id"], "quantity": -1,
        })
        assert response.status_code == 422


class TestQuotesApi:

    def test_quotes_by_creator_with_headers(self, client, builder, work_item):
        for price in ("1.00", "2.00", "3.00"):
            client.post("/api/v1/quotes", json={
                "work_item_id": work_item["id"],
                "created_by_id": builder["id"],
                "supplier_id": builder["id"],
                "unit": "EACH",
                "unit_price": price,
            })
        response = client.get(
            f"/api/v1/quotes/creator/{builder['id']}",
            params={"size": 2, "sort": "unit_price", "direction": "asc"},
        )
        assert response.status_code == 200
        assert [q["unit_symbol"] for q in response.json()] == ["each", "each"]
        assert response.headers["X-Total-Count"] == "3"
        assert response.headers["X-Total-Pages"] == "2"

    def test_invalid_date_filter_is_ignored(self, client, builder):
        response = client.get(
            f"/api/v1/quotes/creator/{builder['id']}",
            params={"created_after": "not-a-date"},
        )
        assert response.status_code == 200
        assert response.json() == []

    def test_unknown_unit(self, client, builder, work_item):
        response = client.post("/api/v1/quotes", json={
            "work_item_id": work_item["id"],
            "created_by_id": builder["id"],
            "supplier_id": builder["id"],
            "unit": "PARSEC",
            "unit_price": "1.00",
        })
        assert response.status_code == 400
