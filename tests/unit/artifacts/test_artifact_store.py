"""Tests for ArtifactStore lifecycle and the permanent-delete cascade."""

from unittest.mock import MagicMock

import pytest

from tracelink.artifacts import (
    ArtifactLink,
    ArtifactStore,
    ArtifactType,
    LinkStore,
    LinkType,
    ProjectStore,
)
from tracelink.exceptions import ArtifactNotFoundError, ArtifactValidationError
from tracelink.fs import FakeFileSystem
from tracelink.ids import IdAllocator
from tracelink.repository import FakeRepository

# =============================================================================
# Create
# =============================================================================


class TestCreate:
    def test_allocates_id_and_commits(
        self, artifact_store: ArtifactStore, fake_repo: FakeRepository
    ) -> None:
        artifact = artifact_store.create(ArtifactType.REQUIREMENT, "Braking distance")

        assert artifact.id == "REQ-001"
        assert artifact.revision == "01"
        assert fake_repo.commits[-1].message == "Create REQ-001"
        assert "requirements/REQ-001.md" in fake_repo.commits[-1].files

    def test_ids_increase_per_type(self, artifact_store: ArtifactStore) -> None:
        first = artifact_store.create(ArtifactType.USE_CASE, "Login")
        second = artifact_store.create(ArtifactType.USE_CASE, "Logout")
        risk = artifact_store.create(ArtifactType.RISK, "Brake fade")

        assert (first.id, second.id, risk.id) == ("UC-001", "UC-002", "RISK-001")

    def test_blank_title_is_rejected(self, artifact_store: ArtifactStore) -> None:
        with pytest.raises(ArtifactValidationError):
            _ = artifact_store.create(ArtifactType.RISK, "   ")

    def test_unknown_field_is_rejected(self, artifact_store: ArtifactStore) -> None:
        with pytest.raises(ArtifactValidationError) as exc_info:
            _ = artifact_store.create(ArtifactType.RISK, "x", owner="me")

        assert exc_info.value.field == "owner"

    def test_requirement_ids_dropped_for_non_test_cases(
        self, artifact_store: ArtifactStore
    ) -> None:
        artifact = artifact_store.create(
            ArtifactType.REQUIREMENT, "x", requirement_ids=["REQ-009"]
        )

        assert artifact.requirement_ids == ()

    def test_logs_creation(
        self, fake_fs: FakeFileSystem, fake_repo: FakeRepository
    ) -> None:
        logger = MagicMock()
        store = ArtifactStore(
            fake_fs, fake_repo, IdAllocator(fake_fs, fake_repo), logger=logger
        )

        _ = store.create(ArtifactType.RISK, "Brake fade")

        logger.info.assert_called_once_with(
            "artifact_created", artifact_id="RISK-001", type="risk"
        )


# =============================================================================
# Read
# =============================================================================


class TestRead:
    def test_get_searches_type_folders(self, artifact_store: ArtifactStore) -> None:
        created = artifact_store.create(ArtifactType.TEST_CASE, "Stop test")

        assert artifact_store.get(created.id) == created
        assert artifact_store.exists(created.id) is True

    def test_get_missing(self, artifact_store: ArtifactStore) -> None:
        with pytest.raises(ArtifactNotFoundError):
            _ = artifact_store.get("REQ-404")

    def test_list_skips_unreadable_files(
        self, artifact_store: ArtifactStore, fake_fs: FakeFileSystem
    ) -> None:
        _ = artifact_store.create(ArtifactType.REQUIREMENT, "Good")
        fake_fs.files["requirements/REQ-bad.md"] = "---\nid: [oops\n---\n"

        ids = [a.id for a in artifact_store.list_artifacts(ArtifactType.REQUIREMENT)]

        assert ids == ["REQ-001"]

    def test_list_excludes_soft_deleted_by_default(
        self, artifact_store: ArtifactStore
    ) -> None:
        kept = artifact_store.create(ArtifactType.RISK, "Kept")
        gone = artifact_store.create(ArtifactType.RISK, "Gone")
        _ = artifact_store.soft_delete(gone.id)

        assert [a.id for a in artifact_store.list_artifacts()] == [kept.id]
        assert len(artifact_store.list_artifacts(include_deleted=True)) == 2


# =============================================================================
# Update and soft delete
# =============================================================================


class TestUpdate:
    def test_bumps_revision_and_commits(
        self, artifact_store: ArtifactStore, fake_repo: FakeRepository
    ) -> None:
        created = artifact_store.create(ArtifactType.REQUIREMENT, "Draft")

        updated = artifact_store.update(created.id, title="Final", status="approved")

        assert updated.revision == "02"
        assert updated.title == "Final"
        assert fake_repo.commits[-1].message == f"Update {created.id}"
        assert artifact_store.get(created.id).revision == "02"

    def test_no_change_keeps_revision(
        self, artifact_store: ArtifactStore, fake_repo: FakeRepository
    ) -> None:
        created = artifact_store.create(ArtifactType.REQUIREMENT, "Same")
        commits = len(fake_repo.commits)

        updated = artifact_store.update(created.id, title="Same")

        assert updated.revision == "01"
        assert len(fake_repo.commits) == commits

    def test_soft_delete_and_restore_keep_revision(
        self, artifact_store: ArtifactStore, fake_repo: FakeRepository
    ) -> None:
        created = artifact_store.create(ArtifactType.REQUIREMENT, "Temp")

        deleted = artifact_store.soft_delete(created.id)
        restored = artifact_store.restore(created.id)

        assert deleted.is_deleted is True
        assert deleted.deleted_at is not None
        assert restored.is_deleted is False
        assert restored.revision == "01"
        assert [c.message for c in fake_repo.commits[-2:]] == [
            f"Delete {created.id}",
            f"Restore {created.id}",
        ]


# =============================================================================
# Permanent delete
# =============================================================================


class TestPermanentDelete:
    def test_cascades_in_one_commit(
        self,
        artifact_store: ArtifactStore,
        link_store: LinkStore,
        project_store: ProjectStore,
        fake_fs: FakeFileSystem,
        fake_repo: FakeRepository,
    ) -> None:
        target = artifact_store.create(ArtifactType.REQUIREMENT, "Target")
        child = artifact_store.create(
            ArtifactType.REQUIREMENT, "Child", parent_ids=[target.id]
        )
        use_case = artifact_store.create(
            ArtifactType.USE_CASE,
            "Flow",
            linked_artifacts=[ArtifactLink(target.id, LinkType.REFINES)],
        )
        test_case = artifact_store.create(
            ArtifactType.TEST_CASE, "Check", requirement_ids=[target.id]
        )
        link = link_store.create_link(use_case.id, target.id, LinkType.SATISFIES)
        project = project_store.create("Brakes")
        _ = project_store.add_artifact(project.id, target)
        commits_before = len(fake_repo.commits)

        result = artifact_store.permanent_delete(
            target.id, link_store=link_store, project_store=project_store
        )

        assert len(fake_repo.commits) == commits_before + 1
        assert fake_repo.commits[-1].message == f"Permanently delete {target.id}"
        assert not fake_fs.exists(target.path)
        assert result.deleted_links == (f"links/{link.id}.md",)
        assert set(result.updated_artifacts) == {child.id, use_case.id, test_case.id}
        assert artifact_store.get(child.id).parent_ids == ()
        assert artifact_store.get(child.id).revision == "02"
        assert artifact_store.get(use_case.id).linked_artifacts == ()
        assert artifact_store.get(test_case.id).requirement_ids == ()
        assert project_store.get(project.id).contains(target.id) is False

    def test_ids_are_not_reused(self, artifact_store: ArtifactStore) -> None:
        first = artifact_store.create(ArtifactType.RISK, "One")
        _ = artifact_store.permanent_delete(first.id)

        second = artifact_store.create(ArtifactType.RISK, "Two")

        assert second.id == "RISK-002"

    def test_unrelated_artifacts_untouched(
        self, artifact_store: ArtifactStore
    ) -> None:
        target = artifact_store.create(ArtifactType.RISK, "Target")
        other = artifact_store.create(ArtifactType.RISK, "Other")

        result = artifact_store.permanent_delete(target.id)

        assert result.updated_artifacts == ()
        assert artifact_store.get(other.id).revision == "01"
