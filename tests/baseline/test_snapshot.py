"""Tests for yearbar.engine.snapshot — clipboard text and export."""

import asyncio

import pytest

from tests.conftest import FakeClipboard, FakeRenderer, makeRecord
from yearbar.engine.scheduler import RefreshScheduler
from yearbar.engine.snapshot import (
    CapabilityError,
    ClipboardCopier,
    ExportBusyError,
    ExportController,
    exportFilename,
    formatClipboardText,
    roundHalfUp,
)
from yearbar.engine.toolbar import ToolbarRenderer


# ---------------------------------------------------------------------------
# formatClipboardText
# ---------------------------------------------------------------------------


class TestFormatClipboardText:
    def test_half_rounds_up(self):
        # 50% of 15 blocks = 7.5 blocks -> 8 filled
        assert formatClipboardText(makeRecord(0.5)) == "▓" * 8 + "░" * 7 + " 50%"

    def test_empty_year(self):
        assert formatClipboardText(makeRecord(0.0)) == "░" * 15 + " 0%"

    def test_full_year(self):
        assert formatClipboardText(makeRecord(1.0)) == "▓" * 15 + " 100%"

    def test_custom_block_count(self):
        assert formatClipboardText(makeRecord(0.25), blocks=4) == "▓░░░ 25%"

    @pytest.mark.parametrize("fraction", [0.0, 0.123, 0.333, 0.5, 0.666, 0.999, 1.0])
    def test_fixed_width(self, fraction):
        text = formatClipboardText(makeRecord(fraction))
        bar, _pct = text.split(" ")
        assert len(bar) == 15

    def test_whole_percentage(self):
        assert formatClipboardText(makeRecord(0.333)).endswith(" 33%")
        assert formatClipboardText(makeRecord(0.125)).endswith(" 13%")

    def test_roundHalfUp(self):
        assert roundHalfUp(2.5) == 3
        assert roundHalfUp(2.4999) == 2
        assert roundHalfUp(0) == 0


# ---------------------------------------------------------------------------
# ClipboardCopier
# ---------------------------------------------------------------------------


class TestClipboardCopier:
    @pytest.mark.asyncio
    async def test_copies_last_record(self, progress_state):
        progress_state.recomputeNow()
        clip = FakeClipboard()

        result = await ClipboardCopier(progress_state, clip).copy()

        assert result.ok
        assert clip.writes == [formatClipboardText(progress_state.readLast())]

    @pytest.mark.asyncio
    async def test_does_not_recompute(self, progress_state):
        progress_state.recomputeNow()
        await ClipboardCopier(progress_state, FakeClipboard()).copy()
        assert progress_state.computations == 1

    @pytest.mark.asyncio
    async def test_text_fixed_at_call_time(self, progress_state):
        # a tick lands while the clipboard write is in flight
        first = progress_state.recomputeNow()
        clip = FakeClipboard(duringWrite=progress_state.recomputeNow)

        result = await ClipboardCopier(progress_state, clip).copy()

        assert result.text.endswith(f" {roundHalfUp(first.percentage)}%")
        assert result.text == formatClipboardText(first)

    @pytest.mark.asyncio
    async def test_absent_record_is_noop(self, progress_state):
        clip = FakeClipboard()
        result = await ClipboardCopier(progress_state, clip).copy()

        assert not result.ok
        assert result.skipped
        assert result.error is None
        assert clip.writes == []

    @pytest.mark.asyncio
    async def test_rejected_write_reports_failure(self, progress_state):
        progress_state.recomputeNow()
        result = await ClipboardCopier(progress_state, FakeClipboard(result=False)).copy()

        assert not result.ok
        assert isinstance(result.error, CapabilityError)

    @pytest.mark.asyncio
    async def test_raising_writer_reports_failure(self, progress_state):
        progress_state.recomputeNow()
        clip = FakeClipboard(error=PermissionError("denied"))

        result = await ClipboardCopier(progress_state, clip).copy()

        assert not result.ok
        assert isinstance(result.error, CapabilityError)
        assert "denied" in str(result.error)


# ---------------------------------------------------------------------------
# ExportController
# ---------------------------------------------------------------------------


def make_export(progress_state, fake_loop, tmp_path, renderer=None):
    toolbar = ToolbarRenderer(language="en")
    sched = RefreshScheduler(
        progress_state,
        liveProjection=toolbar.liveProjection,
        discreteProjection=toolbar.discreteProjection,
        loop=fake_loop,
    )
    exporter = ExportController(
        sched,
        renderer or FakeRenderer(),
        scope=toolbar.viewState,
        filenamePrefix=lambda: "Year_Progress",
        exportDir=tmp_path,
        options=dict(scale=2),
    )
    return sched, exporter


class TestExportController:
    @pytest.mark.asyncio
    async def test_success_writes_file_and_resumes(self, progress_state, fake_loop, tmp_path):
        sched, exporter = make_export(progress_state, fake_loop, tmp_path)
        sched.start()

        result = await exporter.export()

        assert result.ok
        assert result.path == tmp_path / "Year_Progress_2024-06-01.png"
        assert result.path.read_bytes() == b"\x89PNG fake"
        assert sched.running
        assert not exporter.busy

    @pytest.mark.asyncio
    async def test_no_ticks_during_capture(self, progress_state, fake_loop, tmp_path):
        seen = {}

        def during():
            fake_loop.advance(2)
            seen["running"] = sched.running
            seen["handles"] = sched.sched.activeHandles()
            seen["ticks"] = sched.liveTicks + sched.discreteTicks

        renderer = FakeRenderer(duringRender=during)
        sched, exporter = make_export(progress_state, fake_loop, tmp_path, renderer)
        sched.start()

        await exporter.export()

        assert seen == {"running": False, "handles": 0, "ticks": 0}
        fake_loop.advance(1 / 60)
        assert sched.liveTicks == 1

    @pytest.mark.asyncio
    async def test_render_failure_resumes(self, progress_state, fake_loop, tmp_path):
        renderer = FakeRenderer(error=RuntimeError("canvas exploded"))
        sched, exporter = make_export(progress_state, fake_loop, tmp_path, renderer)
        sched.start()

        result = await exporter.export()

        assert not result.ok
        assert isinstance(result.error, CapabilityError)
        assert sched.running
        assert not exporter.busy

    @pytest.mark.asyncio
    async def test_capability_error_passed_through(self, progress_state, fake_loop, tmp_path):
        renderer = FakeRenderer(error=CapabilityError("no backend", reason="unavailable"))
        sched, exporter = make_export(progress_state, fake_loop, tmp_path, renderer)
        sched.start()

        result = await exporter.export()

        assert result.error.reason == "unavailable"
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_nothing_displayed_is_missing_target(self, progress_state, fake_loop, tmp_path):
        sched, exporter = make_export(progress_state, fake_loop, tmp_path)

        result = await exporter.export()

        assert not result.ok
        assert result.error.reason == "missing-target"
        assert exporter.renderer.calls == []

    @pytest.mark.asyncio
    async def test_second_export_rejected_while_busy(self, progress_state, fake_loop, tmp_path):
        release = asyncio.Event()
        renderer = FakeRenderer(duringRender=release.wait)
        sched, exporter = make_export(progress_state, fake_loop, tmp_path, renderer)
        sched.start()

        first = asyncio.create_task(exporter.export())
        await asyncio.sleep(0)
        assert exporter.busy

        second = await exporter.export()
        assert second.busy
        assert isinstance(second.error, ExportBusyError)

        release.set()
        result = await first
        assert result.ok
        assert len(renderer.calls) == 1
        assert sched.running

    @pytest.mark.asyncio
    async def test_hidden_during_export_stays_stopped(self, progress_state, fake_loop, tmp_path):
        renderer = FakeRenderer(duringRender=lambda: sched.stop())
        sched, exporter = make_export(progress_state, fake_loop, tmp_path, renderer)
        sched.start()

        await exporter.export()

        assert not sched.running

    @pytest.mark.asyncio
    async def test_options_passed_to_renderer(self, progress_state, fake_loop, tmp_path):
        sched, exporter = make_export(progress_state, fake_loop, tmp_path)
        sched.start()
        displayed = progress_state.readLast()

        await exporter.export()

        scope, options = exporter.renderer.calls[0]
        assert options == {"scale": 2}
        assert scope.record is displayed
        # resuming after the capture recomputes
        assert progress_state.readLast() is not displayed

    def test_exportFilename_defaults_prefix(self):
        assert exportFilename("", makeRecord()) == "Progress_2023-07-02.png"
