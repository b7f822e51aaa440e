"""Shared fixtures: a fake Typst engine that records every compile."""

import threading
import time

import pytest

FAKE_PDF = b"%PDF-1.7\n% fake document\n"


class FakeEngine:
    """
    Stand-in for TypstEngine.

    Produces a tiny SVG (or a fake PDF) derived from the source, and fails
    with a Typst-like error when the source contains '#invalid' or '#bad'.
    """

    def __init__(self, recorder: "EngineRecorder", font_paths):
        self.recorder = recorder
        self.font_paths = font_paths

    def compile(self, source: bytes, format: str, sys_inputs: dict):
        recorder = self.recorder
        with recorder.lock:
            recorder.in_flight += 1
            recorder.max_in_flight = max(recorder.max_in_flight, recorder.in_flight)
            recorder.calls.append((source.decode("utf-8"), format, dict(sys_inputs)))
        try:
            if recorder.delay:
                time.sleep(recorder.delay)

            text = source.decode("utf-8")
            if "#invalid" in text or "#bad" in text:
                raise RuntimeError("unknown variable: invalid")

            if format == "pdf":
                return FAKE_PDF + text.encode("utf-8")

            width = 10 + len(text) % 50
            return (
                '<svg xmlns="http://www.w3.org/2000/svg" '
                f'width="{width}pt" height="12pt" viewBox="0 0 {width} 12">'
                f'<rect x="1" y="1" width="{width - 2}" height="10" fill="#000"/>'
                f"<!-- {len(text)} {sorted(sys_inputs.items())!r} -->"
                "</svg>"
            ).encode("utf-8")
        finally:
            with recorder.lock:
                recorder.in_flight -= 1


class EngineRecorder:
    """Engine factory that counts handle creations and compile calls."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.lock = threading.Lock()
        self.calls = []
        self.created = 0
        self.in_flight = 0
        self.max_in_flight = 0

    def __call__(self, font_paths):
        self.created += 1
        return FakeEngine(self, font_paths)

    @property
    def sources(self):
        return [source for source, _, _ in self.calls]


@pytest.fixture
def engine():
    """Fake engine factory recording compile calls."""
    return EngineRecorder()


@pytest.fixture
def slow_engine():
    """Fake engine factory whose compiles take a few milliseconds."""
    return EngineRecorder(delay=0.01)
