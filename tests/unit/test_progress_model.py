"""Tests for ProgressModel."""

import asyncio

import pytest

from vpsdash.core.catalog import get_steps
from vpsdash.core.enums import OperationKind, RunStatus
from vpsdash.core.models import OperationRun, ProgressView, TargetRef
from vpsdash.services.progress_model import ProgressModel


def _run(run_id: str, target: TargetRef) -> OperationRun:
    run = OperationRun(
        id=run_id,
        kind=OperationKind.DEPLOY,
        target=target,
        steps=get_steps(OperationKind.DEPLOY),
    )
    run.transition(RunStatus.RUNNING)
    return run


@pytest.fixture
def model(target: TargetRef) -> ProgressModel:
    return ProgressModel(target)


class TestSnapshot:
    def test_empty_model(self, model: ProgressModel) -> None:
        view = model.snapshot()

        assert view.run_id is None
        assert view.target == "srv-1/app-1"
        assert view.is_open is False
        assert view.steps == []
        assert model.run() is None

    def test_begin_opens_view(self, model: ProgressModel, target: TargetRef) -> None:
        view = model.begin(_run("run-a", target))

        assert view.run_id == "run-a"
        assert view.is_open is True
        assert view.title == "Deploying Application"
        assert model.run_id == "run-a"

    def test_run_is_a_copy(self, model: ProgressModel, target: TargetRef) -> None:
        model.begin(_run("run-a", target))

        copy = model.run()
        assert copy is not None
        copy.progress_percent = 99

        assert model.snapshot().progress_percent == 0


class TestUpdate:
    def test_current_run_is_mutated(
        self, model: ProgressModel, target: TargetRef
    ) -> None:
        model.begin(_run("run-a", target))

        applied = model.update("run-a", lambda run: setattr(run, "log_tail", "hi"))

        assert applied is True
        assert model.snapshot().log_tail == "hi"

    def test_stale_run_is_discarded(
        self, model: ProgressModel, target: TargetRef
    ) -> None:
        model.begin(_run("run-a", target))
        model.begin(_run("run-b", target))
        views: list[ProgressView] = []
        model.subscribe(views.append)

        applied = model.update("run-a", lambda run: setattr(run, "log_tail", "old"))

        assert applied is False
        assert model.snapshot().log_tail == ""
        assert views == []

    def test_update_without_run(self, model: ProgressModel) -> None:
        assert model.update("run-a", lambda run: None) is False


class TestListeners:
    def test_listener_receives_every_write(
        self, model: ProgressModel, target: TargetRef
    ) -> None:
        views: list[ProgressView] = []
        model.subscribe(views.append)

        model.begin(_run("run-a", target))
        model.update("run-a", lambda run: setattr(run, "progress_percent", 30))

        assert [v.progress_percent for v in views] == [0, 30]

    def test_unsubscribe(self, model: ProgressModel, target: TargetRef) -> None:
        views: list[ProgressView] = []
        unsubscribe = model.subscribe(views.append)

        unsubscribe()
        unsubscribe()  # Unknown listeners are ignored
        model.begin(_run("run-a", target))

        assert views == []

    def test_failing_listener_does_not_block_others(
        self, model: ProgressModel, target: TargetRef
    ) -> None:
        def broken(view: ProgressView) -> None:
            raise RuntimeError("boom")

        views: list[ProgressView] = []
        model.subscribe(broken)
        model.subscribe(views.append)

        model.begin(_run("run-a", target))

        assert len(views) == 1


class TestClose:
    def test_close_keeps_run(self, model: ProgressModel, target: TargetRef) -> None:
        model.begin(_run("run-a", target))

        view = model.close()

        assert view.is_open is False
        assert view.run_id == "run-a"
        assert view.overall_status is RunStatus.RUNNING

    def test_close_runs_hooks(self, model: ProgressModel, target: TargetRef) -> None:
        closed: list[TargetRef] = []

        def broken(t: TargetRef) -> None:
            raise RuntimeError("boom")

        model.on_close(broken)
        model.on_close(closed.append)
        model.begin(_run("run-a", target))
        model.close()

        assert closed == [target]

    def test_updates_continue_after_close(
        self, model: ProgressModel, target: TargetRef
    ) -> None:
        model.begin(_run("run-a", target))
        model.close()

        model.update("run-a", lambda run: setattr(run, "progress_percent", 45))

        view = model.snapshot()
        assert view.progress_percent == 45
        assert view.is_open is False


class TestStream:
    @pytest.mark.asyncio
    async def test_stream_receives_views(
        self, model: ProgressModel, target: TargetRef
    ) -> None:
        async with model.stream() as queue:
            model.begin(_run("run-a", target))
            view = await asyncio.wait_for(queue.get(), timeout=1)

        assert view.run_id == "run-a"

    @pytest.mark.asyncio
    async def test_full_queue_drops_oldest(
        self, model: ProgressModel, target: TargetRef
    ) -> None:
        model.begin(_run("run-a", target))
        async with model.stream() as queue:
            for percent in range(model.STREAM_QUEUE_SIZE + 5):
                model.update(
                    "run-a",
                    lambda run, p=percent: setattr(run, "progress_percent", p % 101),
                )

            assert queue.qsize() == model.STREAM_QUEUE_SIZE
            first = queue.get_nowait()

        assert first.progress_percent == 5

    @pytest.mark.asyncio
    async def test_stream_unregisters_on_exit(
        self, model: ProgressModel, target: TargetRef
    ) -> None:
        async with model.stream() as queue:
            pass

        model.begin(_run("run-a", target))

        assert queue.empty()
