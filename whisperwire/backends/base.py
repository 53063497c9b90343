"""Base protocol and value types for recognizer backends."""
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Callable, Iterator, Optional, Protocol, Tuple

import numpy as np


class TokenKind(Enum):
    TEXT = "text"
    SPECIAL = "special"


@dataclass(frozen=True)
class Token:
    text: str
    probability: float
    kind: TokenKind = TokenKind.TEXT


@dataclass(frozen=True)
class Segment:
    """A continuous span of recognized speech.

    Times are offsets from the start of the session, not of the call that
    produced the segment.
    """

    index: int
    start: timedelta
    end: timedelta
    text: str
    tokens: Tuple[Token, ...] = ()


SegmentCallback = Callable[[Segment], None]


@dataclass
class RecognizerParams:
    """Per-context decoding options."""

    language: str = "auto"
    translate: bool = False
    offset: float = 0.0
    duration: float = 0.0
    max_tokens: int = 0
    beam_size: int = 5
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: dict) -> "RecognizerParams":
        section = dict(config.get("recognizer", {}))
        known = {name: section.pop(name) for name in list(section) if name in cls.__dataclass_fields__}
        known.pop("extra", None)
        return cls(**known, extra=section)


class RecognizerContext(Protocol):
    """Stateful processing handle bound to one loaded model.

    A context accumulates segments and timing counters across every call to
    process() made during its lifetime. It must only be used by one session.
    """

    def set_params(self, params: RecognizerParams) -> None:
        ...

    def system_info(self) -> str:
        ...

    def is_text(self, token: Token) -> bool:
        ...

    def reset_timings(self) -> None:
        ...

    def timings(self) -> dict:
        ...

    def process(self, samples: np.ndarray, callback: Optional[SegmentCallback] = None) -> None:
        """Recognize samples, blocking until done.

        callback is invoked synchronously once per finalized segment.
        """
        ...

    def segments(self) -> Iterator[Segment]:
        ...

    def close(self) -> None:
        ...


class RecognizerModel(Protocol):
    """Protocol for loaded ASR models.

    A model is read-only once loaded and may be shared; all mutable state
    lives in the contexts it hands out.
    """

    name: str

    def new_context(self) -> RecognizerContext:
        ...

    def close(self) -> None:
        ...
