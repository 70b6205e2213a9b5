"""
Unit tests for post-transaction hooks and hook-aware savepoints.
"""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest

from admissions_crm.infrastructure.db.database import (
    finish_transaction,
    run_after_commit,
    run_after_rollback,
    savepoint,
)


@pytest.fixture
def session(mock_session):
    @asynccontextmanager
    async def nested():
        yield

    mock_session.begin_nested = nested
    return mock_session


class TestFinishTransaction:

    async def test_commit_runs_commit_hooks_only(self, session):
        on_commit, on_rollback = AsyncMock(), AsyncMock()
        run_after_commit(session, on_commit)
        run_after_rollback(session, on_rollback)

        await finish_transaction(session, committed=True)

        on_commit.assert_awaited_once()
        on_rollback.assert_not_awaited()
        assert session.info == {}

    async def test_rollback_runs_rollback_hooks_only(self, session):
        on_commit, on_rollback = AsyncMock(), AsyncMock()
        run_after_commit(session, on_commit)
        run_after_rollback(session, on_rollback)

        await finish_transaction(session, committed=False)

        on_rollback.assert_awaited_once()
        on_commit.assert_not_awaited()

    async def test_failing_hook_does_not_stop_the_rest(self, session):
        failing = AsyncMock(side_effect=RuntimeError("storage down"))
        following = AsyncMock()
        run_after_commit(session, failing)
        run_after_commit(session, following)

        await finish_transaction(session, committed=True)

        following.assert_awaited_once()


class TestSavepoint:

    async def test_failed_block_drops_its_commit_hooks(self, session):
        kept, dropped = AsyncMock(), AsyncMock()
        run_after_commit(session, kept)

        with pytest.raises(ValueError):
            async with savepoint(session):
                run_after_commit(session, dropped)
                raise ValueError("merge failed")
        await finish_transaction(session, committed=True)

        kept.assert_awaited_once()
        dropped.assert_not_awaited()

    async def test_failed_block_runs_its_rollback_hooks_now(self, session):
        earlier, cleanup = AsyncMock(), AsyncMock()
        run_after_rollback(session, earlier)

        with pytest.raises(ValueError):
            async with savepoint(session):
                run_after_rollback(session, cleanup)
                raise ValueError("insert failed")

        cleanup.assert_awaited_once()
        earlier.assert_not_awaited()
        await finish_transaction(session, committed=True)
        earlier.assert_not_awaited()

    async def test_successful_block_keeps_hooks(self, session):
        on_commit = AsyncMock()

        async with savepoint(session):
            run_after_commit(session, on_commit)
        await finish_transaction(session, committed=True)

        on_commit.assert_awaited_once()
