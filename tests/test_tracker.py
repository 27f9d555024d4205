"""
Tests for the golf data tracker: OCR path, model content path, manual
entry, busy flags, and observer registration.
"""

import asyncio

import numpy as np
import pytest

from hudreader.errors import EngineFailure
from hudreader.live_stream import ContentPart, LiveContentStream, ModelContent
from hudreader.models.session import SessionStore
from hudreader.models.shot import ShotQuality, Side
from hudreader.ocr_engine import OCREngine
from hudreader.tracker import GolfDataTracker


def make_frame(w=640, h=360):
    return np.full((h, w, 3), 255, dtype=np.uint8)


@pytest.fixture
def tracker(qtbot, memory_store, fake_engine):
    ocr = OCREngine(lambda: fake_engine)
    store = SessionStore(memory_store, busy_source=ocr)
    tracker = GolfDataTracker(store, ocr)
    yield tracker
    tracker.close()


class TestOCRPath:

    def test_extracts_and_publishes(self, tracker, fake_engine):
        fake_engine.text = "50.1\n56.3\n54.0\n53.6\n5150\n32.6\n"
        record = asyncio.run(tracker.extract_frame(make_frame()))

        assert record is not None
        assert record.carry_distance == 50.1
        assert record.ball_speed == 53.6
        assert record.smash_factor == 0.99
        assert record.club_type == "Driver"
        assert record.shot_quality is ShotQuality.GOOD
        assert tracker.store.history == (record,)
        assert tracker.store.current_shot is record
        assert tracker.is_processing is False

    def test_zero_area_frame_skips_ocr(self, tracker, fake_engine):
        for frame in (None, np.zeros((0, 640, 3), np.uint8),
                      np.zeros((360, 0, 3), np.uint8)):
            assert asyncio.run(tracker.extract_frame(frame)) is None
        assert fake_engine.calls == 0
        assert not tracker.ocr.ready
        assert tracker.is_processing is False

    def test_no_in_range_tokens(self, tracker, fake_engine):
        fake_engine.text = "1.2\n9999\n"
        assert asyncio.run(tracker.extract_frame(make_frame())) is None
        assert tracker.store.history == ()
        assert tracker.is_processing is False

    def test_engine_failure_returns_none(self, tracker, fake_engine):
        fake_engine.error = RuntimeError("tesseract crashed")
        assert asyncio.run(tracker.extract_frame(make_frame())) is None
        assert tracker.store.history == ()
        assert tracker.is_processing is False

    def test_init_failure_returns_none(self, qtbot, memory_store):
        def broken():
            raise EngineFailure("no tesseract")

        ocr = OCREngine(broken)
        tracker = GolfDataTracker(SessionStore(memory_store, busy_source=ocr), ocr)
        assert asyncio.run(tracker.extract_frame(make_frame())) is None
        assert tracker.is_processing is False
        tracker.close()

    def test_busy_flag_during_extraction(self, tracker):
        seen = []

        class Probe:
            def recognize(self, image):
                seen.append(tracker.is_processing)
                return "5150"

            def close(self):
                pass

        tracker.ocr = OCREngine(Probe)
        record = asyncio.run(tracker.extract_frame(make_frame()))
        assert record.spin_rate == 5150
        assert seen == [True]
        assert tracker.is_processing is False

    def test_extract_from_source(self, tracker, fake_engine):
        class Source:
            def read_frame(self):
                return make_frame()

        class BrokenSource:
            def read_frame(self):
                raise OSError("device unplugged")

        fake_engine.text = "5150"
        assert asyncio.run(tracker.extract_from_source(Source())).spin_rate == 5150
        assert asyncio.run(tracker.extract_from_source(BrokenSource())) is None


class TestModelContentPath:

    def test_text_answer_published(self, tracker):
        stream = LiveContentStream()
        tracker.attach(stream)

        stream.publish(ModelContent.from_text(
            "GOLF_DATA:\nBall Speed: 116.1 mph\nClub Speed: 80.3 mph\nCarry: 135 yds"
        ))

        (record,) = tracker.store.history
        assert record.ball_speed == 116.1
        assert record.carry_distance == 135
        assert record.smash_factor == 116.1 / 80.3
        assert record.total_distance is None

    def test_text_without_sentinel_ignored(self, tracker):
        stream = LiveContentStream()
        tracker.attach(stream)
        stream.publish(ModelContent.from_text("Ball Speed: 116.1 mph"))
        stream.publish(ModelContent(parts=(ContentPart(),)))
        assert tracker.store.history == ()

    def test_tool_call_published(self, tracker):
        content = ModelContent(parts=(
            ContentPart(text="Reading the HUD now."),
            ContentPart(tool_name="extract_shot_data", tool_input={
                "carry_distance": 150, "club_type": "7 Iron", "side": "right",
            }),
        ))
        records = tracker.handle_content(content)
        assert len(records) == 1
        assert records[0].carry_distance == 150
        assert records[0].club_type == "7 Iron"
        assert records[0].side is Side.RIGHT

    def test_other_tools_ignored(self, tracker):
        content = ModelContent(parts=(
            ContentPart(tool_name="detect_simulator_state",
                        tool_input={"carry_distance": 150}),
        ))
        assert tracker.handle_content(content) == []

    def test_detach_deregisters_handler(self, tracker):
        stream = LiveContentStream()
        tracker.attach(stream)
        tracker.detach()
        stream.publish(ModelContent.from_text("GOLF_DATA:\nCarry: 135"))
        assert tracker.store.history == ()

    def test_reattach_does_not_stack_handlers(self, tracker):
        first = LiveContentStream()
        second = LiveContentStream()
        tracker.attach(first)
        tracker.attach(second)
        tracker.attach(second)

        first.publish(ModelContent.from_text("GOLF_DATA:\nCarry: 120"))
        second.publish(ModelContent.from_text("GOLF_DATA:\nCarry: 135"))
        assert [r.carry_distance for r in tracker.store.history] == [135]

    def test_paths_interleave(self, tracker, fake_engine):
        stream = LiveContentStream()
        tracker.attach(stream)
        fake_engine.text = "5150"

        async def both():
            task = asyncio.ensure_future(tracker.extract_frame(make_frame()))
            await asyncio.sleep(0)
            stream.publish(ModelContent.from_text("GOLF_DATA:\nCarry: 135"))
            return await task

        ocr_record = asyncio.run(both())
        history = tracker.store.history
        assert len(history) == 2
        assert history[0] is ocr_record
        assert history[1].carry_distance == 135


class TestManualEntry:

    def test_manual_shot(self, tracker):
        record = tracker.add_manual_shot(
            club_type="7-Iron", side="left",
            ball_speed=116.1, club_head_speed=81.5, smash_factor=1.42,
            carry_distance=135, spin_rate=None,
        )
        assert record.club_type == "7-Iron"
        assert record.side is Side.LEFT
        assert record.smash_factor == 1.42
        assert record.spin_rate is None
        assert tracker.store.history == (record,)

    def test_orphan_smash_factor_dropped(self, tracker):
        record = tracker.add_manual_shot(smash_factor=1.4, carry_distance=135)
        assert record.smash_factor is None

    def test_mismatched_smash_factor_replaced(self, tracker):
        record = tracker.add_manual_shot(
            ball_speed=116.1, club_head_speed=80.3, smash_factor=1.0,
        )
        assert record.smash_factor == 116.1 / 80.3

    def test_unknown_field(self, tracker):
        with pytest.raises(ValueError):
            tracker.add_manual_shot(apex=30)
        with pytest.raises(ValueError):
            tracker.add_manual_shot(side="sideways", carry_distance=135)
        assert tracker.store.history == ()
