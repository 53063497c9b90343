"""In-memory recognizer used by the session, batch and server tests."""
from datetime import timedelta

from whisperwire.backends.base import Segment, Token, TokenKind


class FakeContext:
    def __init__(self, fail_process=None, fail_params=None, fail_after=0):
        self.params = None
        self.closed = 0
        self.calls = []
        self._segments = []
        self._fail_process = fail_process
        self._fail_params = fail_params
        self._fail_after = fail_after
        self._timings = {"process_calls": 0, "audio_s": 0.0, "process_s": 0.0, "segments": 0}

    def set_params(self, params):
        if self._fail_params is not None:
            raise self._fail_params
        self.params = params

    def system_info(self):
        return "fake-backend | model=tiny | cpu"

    def is_text(self, token):
        return token.kind is TokenKind.TEXT

    def reset_timings(self):
        self._timings = {"process_calls": 0, "audio_s": 0.0, "process_s": 0.0, "segments": 0}

    def timings(self):
        return dict(self._timings)

    def process(self, samples, callback=None):
        if self._fail_process is not None and len(self.calls) >= self._fail_after:
            raise self._fail_process
        self.calls.append(len(samples))
        index = len(self._segments) + 1
        segment = Segment(
            index=index,
            start=timedelta(seconds=index - 1),
            end=timedelta(seconds=index),
            text=f" chunk of {len(samples)}",
            tokens=(
                Token("[_BEG_]", 1.0, TokenKind.SPECIAL),
                Token(f"len{len(samples)} token", 0.5),
            ),
        )
        self._segments.append(segment)
        self._timings["process_calls"] += 1
        self._timings["audio_s"] += len(samples) / 16000
        self._timings["segments"] = len(self._segments)
        if callback is not None:
            callback(segment)

    def segments(self):
        return iter(list(self._segments))

    def close(self):
        self.closed += 1


class FakeModel:
    name = "tiny"

    def __init__(self, **context_kwargs):
        self.contexts = []
        self._context_kwargs = context_kwargs
        self.fail_new_context = None

    def new_context(self):
        if self.fail_new_context is not None:
            raise self.fail_new_context
        context = FakeContext(**self._context_kwargs)
        self.contexts.append(context)
        return context

    def close(self):
        pass
