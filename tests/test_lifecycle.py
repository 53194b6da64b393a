"""Tests for project status transitions."""

from unittest.mock import AsyncMock

import pytest

from vlogkit.errors import StorageError
from vlogkit.models import Project, ProjectStatus
from vlogkit.workflow import (
    ProjectStateMachine,
    VideoAssetLifecycleManager,
    promote_to_editing_best_effort,
)

from .conftest import make_asset


class TestProjectStateMachine:
    """Tests for ProjectStateMachine."""

    @pytest.fixture
    def state_machine(self, store):
        return ProjectStateMachine(store)

    @pytest.mark.asyncio
    async def test_sequential_recording_reaches_editing(self, project, store, file_storage, state_machine):
        """Test saving clips for orders 0, 1, 2 in turn."""
        assets = VideoAssetLifecycleManager(store, file_storage)

        await assets.save(project, "/clips/0.mov", 10.0, segment_order=0)
        assert await state_machine.mark_editing_if_ready(project) is False
        assert project.status == ProjectStatus.RECORDING

        await assets.save(project, "/clips/1.mov", 15.0, segment_order=1)
        assert await state_machine.mark_editing_if_ready(project) is False
        assert project.status == ProjectStatus.RECORDING

        await assets.save(project, "/clips/2.mov", 15.0, segment_order=2)
        assert await state_machine.mark_editing_if_ready(project) is True
        assert project.status == ProjectStatus.EDITING
        stored = await store.fetch(project.id)
        assert stored.status == ProjectStatus.EDITING

    @pytest.mark.asyncio
    async def test_not_ready_does_not_persist(self, project, store, state_machine):
        updated_at = project.updated_at

        assert await state_machine.mark_editing_if_ready(project) is False

        assert store.save_count == 0
        assert project.updated_at == updated_at

    @pytest.mark.asyncio
    async def test_no_template_is_not_ready(self, store, state_machine):
        project = Project(name="no template")

        assert await state_machine.mark_editing_if_ready(project) is False
        assert project.status == ProjectStatus.CHATTING

    @pytest.mark.asyncio
    async def test_mark_recording_and_completed(self, project, store, state_machine):
        project.status = ProjectStatus.CHATTING

        await state_machine.mark_recording(project)
        assert project.status == ProjectStatus.RECORDING

        await state_machine.mark_completed(project)
        assert project.status == ProjectStatus.COMPLETED
        assert store.save_count == 2

    @pytest.mark.asyncio
    async def test_complete_project_is_set_to_editing_again(self, project, store, state_machine):
        """Test that a completed project is moved to editing while complete."""
        for order in (0, 1, 2):
            project.video_assets.append(make_asset(f"/clips/{order}.mov", segment_order=order))
        project.status = ProjectStatus.COMPLETED

        assert await state_machine.mark_editing_if_ready(project) is True

        assert project.status == ProjectStatus.EDITING
        assert store.save_count == 1
        assert (await store.fetch(project.id)).status == ProjectStatus.EDITING

    @pytest.mark.asyncio
    async def test_failed_save_restores_status(self, project):
        store = AsyncMock()
        store.save.side_effect = StorageError("disk full")
        state_machine = ProjectStateMachine(store)
        updated_at = project.updated_at

        with pytest.raises(StorageError):
            await state_machine.mark_completed(project)

        assert project.status == ProjectStatus.RECORDING
        assert project.updated_at == updated_at


class TestBestEffortPromotion:
    """Tests for promote_to_editing_best_effort."""

    @pytest.mark.asyncio
    async def test_swallows_storage_error(self, project):
        for order in (0, 1, 2):
            project.video_assets.append(make_asset(f"/clips/{order}.mov", segment_order=order))
        store = AsyncMock()
        store.save.side_effect = StorageError("disk full")

        result = await promote_to_editing_best_effort(ProjectStateMachine(store), project)

        assert result is False
        assert project.status == ProjectStatus.RECORDING
        store.save.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_not_ready_returns_false(self, project, store):
        assert await promote_to_editing_best_effort(ProjectStateMachine(store), project) is False

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self, project):
        for order in (0, 1, 2):
            project.video_assets.append(make_asset(f"/clips/{order}.mov", segment_order=order))
        store = AsyncMock()
        store.save.side_effect = RuntimeError("bug")

        with pytest.raises(RuntimeError):
            await promote_to_editing_best_effort(ProjectStateMachine(store), project)
