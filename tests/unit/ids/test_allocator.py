"""Tests for IdAllocator."""

from unittest.mock import MagicMock

import pytest

from tracelink.config import IdsConfig, SyncConfig
from tracelink.exceptions import (
    CounterOverflowError,
    RepositoryConflictError,
    UnknownArtifactTypeError,
)
from tracelink.fs import FakeFileSystem
from tracelink.ids import SYNC_COMMIT_MESSAGE, IdAllocator
from tracelink.repository import CommitResult, FakeRepository

# =============================================================================
# Allocation
# =============================================================================


class TestAllocation:
    def test_sequential_ids(self, allocator: IdAllocator) -> None:
        ids = [allocator.get_next_id("requirement") for _ in range(3)]

        assert ids == ["REQ-001", "REQ-002", "REQ-003"]

    def test_counter_file_holds_last_number(
        self, allocator: IdAllocator, fake_fs: FakeFileSystem
    ) -> None:
        _ = allocator.get_next_id("useCase")
        _ = allocator.get_next_id("useCase")

        assert fake_fs.files["counters/usecases.md"] == "2\n"
        assert allocator.peek("useCase") == 2

    def test_kinds_are_independent(self, allocator: IdAllocator) -> None:
        _ = allocator.get_next_id("requirement")

        assert allocator.get_next_id("risk") == "RISK-001"
        assert allocator.get_next_id("link") == "LINK-001"

    def test_commits_counter_file(
        self, allocator: IdAllocator, fake_repo: FakeRepository
    ) -> None:
        _ = allocator.get_next_id("testCase")

        assert fake_repo.commits[-1].message == "Update testCase counter"
        assert fake_repo.commits[-1].changed == frozenset({"counters/testcases.md"})

    def test_batch_is_one_write(
        self, allocator: IdAllocator, fake_fs: FakeFileSystem
    ) -> None:
        _ = allocator.get_next_id("requirement")
        writes_before = len(fake_fs.writes)

        ids = allocator.get_next_ids("requirement", 5)

        assert ids == ("REQ-002", "REQ-003", "REQ-004", "REQ-005", "REQ-006")
        assert len(fake_fs.writes) == writes_before + 1
        assert allocator.peek("requirement") == 6

    @pytest.mark.parametrize("count", [0, -3])
    def test_non_positive_batch_touches_nothing(
        self, allocator: IdAllocator, fake_fs: FakeFileSystem, count: int
    ) -> None:
        assert allocator.get_next_ids("requirement", count) == ()
        assert fake_fs.writes == []

    def test_unknown_kind_raises_before_io(
        self, allocator: IdAllocator, fake_fs: FakeFileSystem
    ) -> None:
        with pytest.raises(UnknownArtifactTypeError) as exc_info:
            _ = allocator.get_next_id("widget")

        assert exc_info.value.kind == "widget"
        assert "requirement" in exc_info.value.known_kinds
        assert fake_fs.writes == []

    def test_numbers_wider_than_padding(
        self, fake_fs: FakeFileSystem, fake_repo: FakeRepository
    ) -> None:
        allocator = IdAllocator(fake_fs, fake_repo, config=IdsConfig(digits=2))
        allocator.set_counter("risk", 99)

        assert allocator.get_next_id("risk") == "RISK-100"
        assert allocator.format_id("risk", 7) == "RISK-07"

    def test_garbage_counter_reads_as_zero(
        self, allocator: IdAllocator, fake_fs: FakeFileSystem
    ) -> None:
        fake_fs.files["counters/risks.md"] = "not a number"

        assert allocator.get_next_id("risk") == "RISK-001"

    def test_negative_counter_is_rejected(self, allocator: IdAllocator) -> None:
        with pytest.raises(CounterOverflowError) as exc_info:
            allocator.set_counter("risk", -1)

        assert exc_info.value.value == -1

    def test_logs_allocation(
        self, fake_fs: FakeFileSystem, fake_repo: FakeRepository
    ) -> None:
        logger = MagicMock()
        allocator = IdAllocator(fake_fs, fake_repo, logger=logger)

        _ = allocator.get_next_ids("requirement", 2)

        logger.info.assert_called_once_with(
            "ids_allocated", kind="requirement", first=1, last=2
        )


# =============================================================================
# Remote sync
# =============================================================================


class ConflictingSyncRepository(FakeRepository):
    """Rejects the sync commit as if another writer got there first."""

    def commit(self, message: str) -> CommitResult:
        if message == SYNC_COMMIT_MESSAGE:
            msg = "Counter files changed underneath the sync commit"
            raise RepositoryConflictError(msg)
        return super().commit(message)


class UnreadableRemoteRepository(FakeRepository):
    """Fetches a head whose tree cannot be read."""

    def get_file_at_commit(self, path: str, commit: str) -> bytes | None:
        msg = f"Commit not found: {commit}"
        raise KeyError(msg)


@pytest.fixture
def synced(fake_fs: FakeFileSystem, fake_repo: FakeRepository) -> IdAllocator:
    fake_repo.remotes["origin"] = {}
    return IdAllocator(fake_fs, fake_repo, sync=SyncConfig(enabled=True))


class TestSync:
    def test_disabled_sync_never_touches_remote(
        self, allocator: IdAllocator, fake_repo: FakeRepository
    ) -> None:
        fake_repo.fail_fetch = True

        assert allocator.get_next_id_with_sync("requirement") == "REQ-001"
        assert fake_repo.pushed == []

    def test_remote_counter_ahead_wins(
        self, synced: IdAllocator, fake_repo: FakeRepository
    ) -> None:
        fake_repo.remotes["origin"] = {"counters/requirements.md": "7\n"}

        assert synced.get_next_id_with_sync("requirement") == "REQ-008"
        assert fake_repo.pushed == ["origin/main"]
        assert fake_repo.remotes["origin"]["counters/requirements.md"] == "8\n"

    def test_remote_counter_behind_is_ignored(
        self, synced: IdAllocator, fake_repo: FakeRepository
    ) -> None:
        synced.set_counter("requirement", 10)
        fake_repo.remotes["origin"] = {"counters/requirements.md": "3\n"}

        assert synced.get_next_id_with_sync("requirement") == "REQ-011"

    def test_missing_remote_counter(self, synced: IdAllocator) -> None:
        assert synced.get_next_id_with_sync("risk") == "RISK-001"

    def test_fetch_failure_is_logged_and_allocation_proceeds(
        self, fake_fs: FakeFileSystem, fake_repo: FakeRepository
    ) -> None:
        logger = MagicMock()
        fake_repo.fail_fetch = True
        allocator = IdAllocator(
            fake_fs, fake_repo, sync=SyncConfig(enabled=True), logger=logger
        )

        assert allocator.get_next_id_with_sync("requirement") == "REQ-001"
        assert logger.warning.call_args.args[0] == "Failed to pull counters"

    def test_push_failure_is_logged_and_id_kept(
        self, fake_fs: FakeFileSystem, fake_repo: FakeRepository
    ) -> None:
        logger = MagicMock()
        fake_repo.remotes["origin"] = {}
        fake_repo.fail_push = True
        allocator = IdAllocator(
            fake_fs, fake_repo, sync=SyncConfig(enabled=True), logger=logger
        )

        assert allocator.get_next_id_with_sync("requirement") == "REQ-001"
        assert allocator.peek("requirement") == 1
        assert logger.warning.call_args.args[0] == "Failed to push counters"

    def test_sync_commit_conflict_is_logged_and_id_kept(
        self, fake_fs: FakeFileSystem
    ) -> None:
        logger = MagicMock()
        repo = ConflictingSyncRepository(workspace=fake_fs)
        repo.remotes["origin"] = {}
        allocator = IdAllocator(
            fake_fs, repo, sync=SyncConfig(enabled=True), logger=logger
        )

        assert allocator.get_next_id_with_sync("requirement") == "REQ-001"
        assert allocator.peek("requirement") == 1
        assert repo.pushed == []
        assert logger.warning.call_args.args[0] == "Failed to push counters"

    def test_unreadable_remote_counter_is_logged_and_allocation_proceeds(
        self, fake_fs: FakeFileSystem
    ) -> None:
        logger = MagicMock()
        repo = UnreadableRemoteRepository(workspace=fake_fs)
        repo.remotes["origin"] = {"counters/requirements.md": "7\n"}
        allocator = IdAllocator(
            fake_fs, repo, sync=SyncConfig(enabled=True), logger=logger
        )

        assert allocator.get_next_id_with_sync("requirement") == "REQ-001"
        pull_warning = logger.warning.call_args_list[0]
        assert pull_warning.args[0] == "Failed to pull counters"
        assert pull_warning.kwargs["kind"] == "requirement"

    def test_sync_commit_includes_every_counter(
        self,
        synced: IdAllocator,
        fake_fs: FakeFileSystem,
        fake_repo: FakeRepository,
    ) -> None:
        _ = synced.get_next_id("risk")
        fake_fs.files["counters/risks.md"] = "5\n"

        _ = synced.get_next_id_with_sync("requirement")

        assert fake_repo.commits[-1].message == SYNC_COMMIT_MESSAGE
        assert fake_repo.commits[-1].changed == frozenset({"counters/risks.md"})


# =============================================================================
# Recalculation
# =============================================================================


class TestRecalculate:
    def test_raises_counters_to_highest_observed(
        self, allocator: IdAllocator, fake_repo: FakeRepository
    ) -> None:
        allocator.set_counter("useCase", 2)

        result = allocator.recalculate_counters(
            {
                "requirement": ["REQ-004", "REQ-012", "REQ-x", "UC-099"],
                "useCase": ["UC-001"],
            }
        )

        assert result == {"requirement": 12, "useCase": 2}
        assert allocator.peek("requirement") == 12
        assert allocator.peek("useCase") == 2
        assert fake_repo.commits[-1].message == "Recalculate counters"

    def test_never_decreases(
        self, allocator: IdAllocator, fake_repo: FakeRepository
    ) -> None:
        allocator.set_counter("risk", 9)
        commits = len(fake_repo.commits)

        assert allocator.recalculate_counters({"risk": ["RISK-003"]}) == {"risk": 9}
        assert len(fake_repo.commits) == commits

    def test_unknown_kind_fails_before_any_write(
        self, allocator: IdAllocator, fake_fs: FakeFileSystem
    ) -> None:
        with pytest.raises(UnknownArtifactTypeError):
            _ = allocator.recalculate_counters(
                {"requirement": ["REQ-005"], "widget": ["W-1"]}
            )

        assert fake_fs.writes == []
