"""
Tests for WorkItemService and ProjectService.
"""
import os
import subprocess
import sys
import uuid
from pathlib import Path

import pytest

from buildflow.models import Domain, WorkItem
from buildflow.domain.dto import CreateWorkItemRequest
from buildflow.domain.entities import Address, DateFilter, PageRequest
from buildflow.domain.exceptions import (
    NotPersistedError,
    UserNotFoundError,
    ValidationError,
)


def _request(user, code="EXC-01", name="Excavation", **kwargs):
    return CreateWorkItemRequest(code=code, name=name, user_id=user.id, **kwargs)


class TestWorkItemCreation:

    def test_defaults(self, work_item_service, builder):
        dto = work_item_service.create_work_item(_request(builder)).work_item
        assert dto.default_group_name == "Unassigned"
        assert dto.domain == "PUBLIC"
        assert dto.optional is False
        assert dto.user_id == builder.id

    def test_blank_group_name_normalized(self, work_item_service, builder):
        dto = work_item_service.create_work_item(_request(builder, default_group_name="  ")).work_item
        assert dto.default_group_name == "Unassigned"

    def test_unknown_domain_falls_back_to_public(self, work_item_service, builder):
        dto = work_item_service.create_work_item(_request(builder, domain="CLASSIFIED")).work_item
        assert dto.domain == "PUBLIC"

    def test_private_domain(self, work_item_service, builder):
        dto = work_item_service.create_work_item(_request(builder, domain="private")).work_item
        assert dto.domain == "PRIVATE"

    @pytest.mark.parametrize("code,name", [("", "Excavation"), ("EXC-01", "   ")])
    def test_blank_code_or_name_rejected(self, work_item_service, builder, code, name):
        with pytest.raises(ValidationError):
            work_item_service.create_work_item(_request(builder, code=code, name=name))

    def test_unknown_user(self, work_item_service):
        user_id = uuid.uuid4()
        request = CreateWorkItemRequest(code="X", name="Y", user_id=user_id)
        with pytest.raises(UserNotFoundError, match=f"User with ID '{user_id}' does not exist."):
            work_item_service.create_work_item(request)


class TestWorkItemLifecycle:

    def test_update_refreshes_timestamp(self, work_item_service, work_item):
        stamp = work_item.last_updated_at
        work_item.name = "Reinforced concrete slab"
        work_item_service.update(work_item)
        assert work_item.last_updated_at > stamp
        assert work_item_service.find_by_id(work_item.id).name == "Reinforced concrete slab"

    def test_update_requires_persisted(self, work_item_service, builder):
        with pytest.raises(NotPersistedError, match="WorkItem must be already persisted."):
            work_item_service.update(WorkItem(code="A", name="B", user=builder))

    def test_blank_name_rejected_on_direct_flush(self, db_session, work_item):
        work_item.name = " "
        with pytest.raises(ValidationError):
            db_session.flush()
        db_session.rollback()

    def test_hooks_active_when_only_models_imported(self):
        script = (
            "import sys\n"
            "from sqlalchemy import event\n"
            "from buildflow.models import WorkItem, EstimateLine\n"
            "handlers = sys.modules['buildflow.domain.events.handlers']\n"
            "assert 'buildflow.domain.services' not in sys.modules\n"
            "assert event.contains(WorkItem, 'before_insert', handlers.work_item_before_insert)\n"
            "assert event.contains(EstimateLine, 'before_update', handlers.estimate_line_before_update)\n"
        )
        env = dict(os.environ, BUILDFLOW_DATABASE_URL="sqlite://")
        result = subprocess.run(
            [sys.executable, "-c", script],
            cwd=Path(__file__).resolve().parent.parent,
            env=env,
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0, result.stderr

    def test_delete(self, work_item_service, work_item):
        work_item_id = work_item.id
        work_item_service.delete(work_item)
        assert not work_item_service.exists_by_id(work_item_id)

    def test_delete_requires_persisted(self, work_item_service, builder):
        with pytest.raises(NotPersistedError):
            work_item_service.delete(WorkItem(code="A", name="B", user=builder))


class TestWorkItemQueries:

    @pytest.fixture
    def catalog(self, work_item_service, builder, owner):
        work_item_service.create_work_item(_request(builder, code="A-1", name="Framing"))
        work_item_service.create_work_item(_request(builder, code="A-2", name="Roofing", domain="PRIVATE"))
        work_item_service.create_work_item(_request(owner, code="B-1", name="Painting"))

    def test_find_all_and_count(self, work_item_service, catalog):
        assert work_item_service.count() == 3
        assert len(work_item_service.find_all()) == 3

    def test_get_by_user_id(self, work_item_service, builder, catalog):
        codes = {item.code for item in work_item_service.get_by_user_id(builder.id)}
        assert codes == {"A-1", "A-2"}

    def test_get_by_user_id_requires_id(self, work_item_service):
        with pytest.raises(ValidationError):
            work_item_service.get_by_user_id(None)

    def test_get_by_domain(self, work_item_service, catalog):
        assert [item.code for item in work_item_service.get_by_domain("private")] == ["A-2"]
        assert len(work_item_service.find_by_domain(Domain.PUBLIC)) == 2

    def test_get_by_domain_rejects_unknown(self, work_item_service, catalog):
        with pytest.raises(ValidationError, match="domain"):
            work_item_service.get_by_domain("SECRET")

    def test_get_by_user_id_and_code(self, work_item_service, builder, catalog):
        assert work_item_service.get_by_user_id_and_code(builder.id, "A-2").name == "Roofing"
        assert work_item_service.get_by_user_id_and_code(builder.id, "B-1") is None

    def test_blank_code_checked_before_user(self, work_item_service):
        with pytest.raises(ValidationError):
            work_item_service.get_by_user_id_and_code(uuid.uuid4(), "  ")

    def test_unknown_user_for_code_lookup(self, work_item_service):
        with pytest.raises(UserNotFoundError):
            work_item_service.get_by_user_id_and_code(uuid.uuid4(), "A-1")

    def test_get_by_user_id_and_domain(self, work_item_service, builder, catalog):
        items = work_item_service.get_by_user_id_and_domain(builder.id, "PUBLIC")
        assert [item.code for item in items] == ["A-1"]


class TestProjectService:

    def test_create_project(self, project_service, builder, owner):
        location = Address(street_number="10", street_name="Rue Ste-Catherine", city="Montreal")
        project = project_service.create_project(builder.id, owner.id, location)
        assert project.id is not None
        assert project.builder_id == builder.id
        assert project.owner_id == owner.id
        assert project.location == location
        assert project.estimates == []

    def test_builder_may_own(self, project_service, builder):
        project = project_service.create_project(builder.id, builder.id)
        assert project.builder is project.owner

    def test_unknown_builder(self, project_service, owner):
        builder_id = uuid.uuid4()
        with pytest.raises(UserNotFoundError, match=f"Builder with ID '{builder_id}' does not exist."):
            project_service.create_project(builder_id, owner.id)

    def test_unknown_owner(self, project_service, builder):
        with pytest.raises(UserNotFoundError, match="Owner with ID"):
            project_service.create_project(builder.id, uuid.uuid4())

    def test_update_location(self, project_service, project):
        stamp = project.last_updated_at
        project.location = Address(city="Toronto")
        project_service.update(project)
        assert project_service.find_by_id(project.id).location.city == "Toronto"
        assert project.last_updated_at > stamp

    def test_update_requires_persisted(self, project_service, builder, owner):
        from buildflow.models import Project
        with pytest.raises(NotPersistedError, match="Project must be already persisted."):
            project_service.update(Project(builder=builder, owner=owner))

    def test_delete_removes_estimates(self, project_service, estimate_service, project, work_item):
        estimate = estimate_service.create_estimate(project.id)
        group = estimate_service.add_group(estimate.id, "Site work")
        line = estimate_service.add_line(group.id, work_item.id, 3)
        estimate_id, group_id, line_id = estimate.id, group.id, line.id
        project_id = project.id

        project_service.delete(project)

        assert project_service.find_by_id(project_id) is None
        assert estimate_service.find_by_id(estimate_id) is None
        assert estimate_service.group_repo.get_by_id(group_id) is None
        assert estimate_service.line_repo.get_by_id(line_id) is None

    def test_find_by_builder_and_owner(self, project_service, project, builder, owner):
        assert [p.id for p in project_service.find_by_builder_id(builder.id)] == [project.id]
        assert [p.id for p in project_service.find_by_owner_id(owner.id)] == [project.id]
        assert project_service.find_by_owner_id(builder.id) == []

    def test_paged_projects_by_builder(self, project_service, builder, owner):
        for _ in range(3):
            project_service.create_project(builder.id, owner.id)
        page = project_service.get_projects_by_builder_id(
            builder.id, PageRequest(page=0, size=2, sort="created_at", direction="asc")
        )
        assert page.total == 3
        assert page.total_pages == 2
        assert len(page.items) == 2
        assert page.has_next
        assert page.items[0].created_at < page.items[1].created_at

    def test_paged_projects_unknown_owner(self, project_service):
        with pytest.raises(UserNotFoundError):
            project_service.get_projects_by_owner_id(uuid.uuid4())

    def test_paged_projects_default_request(self, project_service, project, owner):
        page = project_service.get_projects_by_owner_id(owner.id)
        assert page.size == 25
        assert page.total == 1

    def test_delete_removes_participants(self, project_service, participant_service, project, make_contact):
        participant = participant_service.create_participant(project.id, make_contact(), "OWNER")
        participant_id, contact_id = participant.id, participant.contact_id

        project_service.delete(project)

        assert participant_service.find_by_id(participant_id) is None
        assert participant_service.contact_service.find_by_id(contact_id) is not None


class TestCombinedProjects:

    @pytest.fixture
    def projects(self, project_service, builder, owner):
        """Projects the builder builds or owns, in creation order."""
        return [
            project_service.create_project(builder.id, owner.id),
            project_service.create_project(owner.id, builder.id),
            project_service.create_project(builder.id, builder.id),
        ]

    def _ids(self, page):
        return {project.id for project in page.items}

    def test_both_scopes_lists_each_project_once(self, project_service, builder, projects):
        page = project_service.get_combined_projects(builder.id, "both")
        assert page.total == 3
        assert self._ids(page) == {p.id for p in projects}

    def test_builder_scope(self, project_service, builder, projects):
        page = project_service.get_combined_projects(builder.id, "Builder")
        assert self._ids(page) == {projects[0].id, projects[2].id}

    def test_owner_scope(self, project_service, builder, projects):
        page = project_service.get_combined_projects(builder.id, "owner")
        assert self._ids(page) == {projects[1].id, projects[2].id}

    def test_unknown_scope_means_both(self, project_service, builder, projects):
        assert project_service.get_combined_projects(builder.id, "everyone").total == 3
        assert project_service.get_combined_projects(builder.id, None).total == 3

    def test_created_window(self, project_service, builder, projects):
        date_filter = DateFilter(created_after=projects[1].created_at)
        page = project_service.get_combined_projects(builder.id, "both", date_filter)
        assert self._ids(page) == {projects[1].id, projects[2].id}

        date_filter = DateFilter(created_before=projects[0].created_at)
        page = project_service.get_combined_projects(builder.id, "both", date_filter)
        assert self._ids(page) == {projects[0].id}

    def test_paging_and_default_order(self, project_service, builder, projects):
        page = project_service.get_combined_projects(
            builder.id, "both", page_request=PageRequest(page=1, size=2, sort="created_at", direction="asc")
        )
        assert page.total_pages == 2
        assert [p.id for p in page.items] == [projects[2].id]

        newest_first = project_service.get_combined_projects(builder.id)
        assert newest_first.items[0].id == projects[2].id

    def test_unknown_user(self, project_service):
        with pytest.raises(UserNotFoundError):
            project_service.get_combined_projects(uuid.uuid4())
