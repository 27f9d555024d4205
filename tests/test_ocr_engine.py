"""
Tests for the OCR engine adapter.

Uses fake engines so no tesseract binary is needed.
"""

import asyncio
import threading
import time
from unittest.mock import patch

import numpy as np
import pytest

from hudreader.errors import EngineFailure
from hudreader.ocr_engine import OCREngine, TesseractEngine, build_tesseract_config


class TestTesseractConfig:

    def test_config_string(self):
        config = build_tesseract_config()
        assert "--psm 6" in config
        assert "tessedit_char_whitelist=0123456789.-" in config
        assert "preserve_interword_spaces=0" in config

    @patch("hudreader.ocr_engine.pytesseract")
    def test_recognize_passes_config(self, mock_tess):
        mock_tess.get_tesseract_version.return_value = "5.3.0"
        mock_tess.image_to_string.return_value = "54.0\n"

        engine = TesseractEngine()
        image = np.zeros((10, 10), dtype=np.uint8)
        assert engine.recognize(image) == "54.0\n"

        kwargs = mock_tess.image_to_string.call_args[1]
        assert kwargs["config"] == build_tesseract_config()
        assert kwargs["lang"] == "eng"


class TestOCREngine:

    def test_lazy_construction(self, fake_engine):
        calls = []

        def factory():
            calls.append(1)
            return fake_engine

        ocr = OCREngine(factory)
        assert calls == []
        assert not ocr.ready

        fake_engine.text = "50.1"
        assert asyncio.run(ocr.recognize(np.zeros((4, 4), np.uint8))) == "50.1"
        assert asyncio.run(ocr.recognize(np.zeros((4, 4), np.uint8))) == "50.1"
        assert calls == [1]
        assert fake_engine.calls == 2

    def test_concurrent_first_use_constructs_once(self, fake_engine):
        lock = threading.Lock()
        calls = []

        def slow_factory():
            with lock:
                calls.append(1)
            time.sleep(0.05)
            return fake_engine

        ocr = OCREngine(slow_factory)

        async def main():
            return await asyncio.gather(*(ocr.acquire() for _ in range(5)))

        engines = asyncio.run(main())
        assert len(calls) == 1
        assert all(e is fake_engine for e in engines)

    def test_failed_init_shared_then_retried(self, fake_engine):
        attempts = []

        def factory():
            attempts.append(1)
            time.sleep(0.02)
            if len(attempts) == 1:
                raise RuntimeError("tesseract not installed")
            return fake_engine

        ocr = OCREngine(factory)

        async def first_use():
            return await asyncio.gather(
                ocr.acquire(), ocr.acquire(), return_exceptions=True,
            )

        results = asyncio.run(first_use())
        assert len(attempts) == 1
        assert all(isinstance(r, EngineFailure) for r in results)

        assert asyncio.run(ocr.acquire()) is fake_engine
        assert len(attempts) == 2

    def test_recognition_failure(self, fake_engine):
        fake_engine.error = RuntimeError("boom")
        ocr = OCREngine(lambda: fake_engine)
        with pytest.raises(EngineFailure):
            asyncio.run(ocr.recognize(np.zeros((4, 4), np.uint8)))
        assert ocr.is_busy is False

    def test_busy_during_call(self):
        seen = []

        class Probe:
            def recognize(self, image):
                seen.append(ocr.is_busy)
                return ""

            def close(self):
                pass

        ocr = OCREngine(Probe)
        assert asyncio.run(ocr.recognize(np.zeros((4, 4), np.uint8))) == ""
        assert seen == [True]
        assert ocr.is_busy is False

    def test_close_releases_engine(self, fake_engine):
        ocr = OCREngine(lambda: fake_engine)
        asyncio.run(ocr.acquire())
        ocr.close()
        assert fake_engine.closed
        assert not ocr.ready

    def test_busy_changed_edges(self, fake_engine):
        ocr = OCREngine(lambda: fake_engine)
        edges = []
        ocr.busy_changed.connect(edges.append)

        asyncio.run(ocr.recognize(np.zeros((4, 4), np.uint8)))
        assert edges == [True, False]

        fake_engine.error = RuntimeError("tesseract crashed")
        with pytest.raises(EngineFailure):
            asyncio.run(ocr.recognize(np.zeros((4, 4), np.uint8)))
        assert edges == [True, False, True, False]
        assert not ocr.is_busy
