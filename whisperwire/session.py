"""Transcription session: one recognizer context per connection or file."""
import sys
from typing import Iterator, Optional, TextIO

import numpy as np

from .backends.base import (
    RecognizerContext,
    RecognizerModel,
    RecognizerParams,
    Segment,
    SegmentCallback,
    Token,
)
from .errors import ParameterError, ProcessingError, SessionOpenError


class TranscriptionSession:
    """Owns a recognizer context from open() until close().

    Frames must be passed to process() in arrival order, one call at a time.
    Segments accumulate in the context for the whole session and are drained
    exactly once, after the last process() call.
    """

    def __init__(self, context: RecognizerContext, out: Optional[TextIO] = None):
        self._context = context
        self.out = out or sys.stdout
        self._drained = False
        self._closed = False

    @classmethod
    def open(
        cls,
        model: RecognizerModel,
        params: RecognizerParams,
        out: Optional[TextIO] = None,
    ) -> "TranscriptionSession":
        """Create a fresh context from model and apply params.

        Raises:
            SessionOpenError: The model could not create a context.
            ParameterError: A parameter was rejected.
        """
        try:
            context = model.new_context()
        except Exception as e:
            raise SessionOpenError(f"failed to create context: {e}") from e

        session = cls(context, out)
        try:
            context.set_params(params)
        except ParameterError:
            session.close()
            raise
        except Exception as e:
            session.close()
            raise ParameterError(str(e)) from e

        try:
            info = context.system_info()
        except Exception as e:
            session.close()
            raise SessionOpenError(f"failed to query system info: {e}") from e

        session.out.write(f"\n{info}\n")
        session.out.flush()
        return session

    def __enter__(self) -> "TranscriptionSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def is_text(self, token: Token) -> bool:
        return self._context.is_text(token)

    def reset_timings(self) -> None:
        self._context.reset_timings()

    def process(self, samples: np.ndarray, callback: Optional[SegmentCallback] = None) -> None:
        """Run the recognizer over samples; blocks until it returns."""
        if self._closed:
            raise ProcessingError("session is closed")
        if self._drained:
            raise ProcessingError("segments were already drained")
        try:
            self._context.process(samples, callback)
        except ProcessingError:
            raise
        except Exception as e:
            raise ProcessingError(str(e)) from e

    def print_timings(self) -> None:
        t = self._context.timings()
        audio_s = t.get("audio_s", 0.0)
        process_s = t.get("process_s", 0.0)
        rtf = process_s / audio_s if audio_s else 0.0
        self.out.write(
            f"\n[INFO] timings: calls = {t.get('process_calls', 0)}, "
            f"audio = {audio_s:.2f}s, processing = {process_s:.2f}s, "
            f"segments = {t.get('segments', 0)}, rtf = {rtf:.3f}\n"
        )
        self.out.flush()

    def drain_segments(self) -> Iterator[Segment]:
        """Return the session's finalized segments in order.

        Raises:
            RuntimeError: If called more than once.
        """
        if self._drained:
            raise RuntimeError("segments already drained")
        self._drained = True
        return self._context.segments()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._context.close()
