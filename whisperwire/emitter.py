"""Segment callback: live token rendering and transport push."""
from typing import Callable, Optional, TextIO

from .backends.base import Segment, Token
from .colorize import colorize, probability_bucket
from .formatter import format_duration, truncate_ms

TokenSink = Callable[[str], None]


class SegmentEmitter:
    """Callable handed to the recognizer; runs once per finalized segment.

    Invoked synchronously from inside the recognizer call, on the thread that
    runs process(). Live display writes to `out`; when a transport sink is
    attached every token's raw text is pushed to it as its own message.
    """

    def __init__(
        self,
        out: TextIO,
        show_tokens: bool = False,
        colorize_tokens: bool = False,
        is_text: Optional[Callable[[Token], bool]] = None,
        transport: Optional[TokenSink] = None,
    ):
        self.out = out
        self.show_tokens = show_tokens
        self.colorize_tokens = colorize_tokens
        self.is_text = is_text or (lambda token: True)
        self.transport = transport

    @property
    def active(self) -> bool:
        return self.show_tokens or self.transport is not None

    def __call__(self, segment: Segment) -> None:
        if self.show_tokens:
            self._render(segment)
        if self.transport is not None:
            for token in segment.tokens:
                self.transport(token.text)

    def _render(self, segment: Segment) -> None:
        start = format_duration(truncate_ms(segment.start))
        end = format_duration(truncate_ms(segment.end))
        self.out.write(f"{segment.index:02d} [{start:>6}->{end:>6}] ")
        for token in segment.tokens:
            if self.colorize_tokens and self.is_text(token):
                text = colorize(token.text, probability_bucket(token.probability))
            else:
                text = token.text
            self.out.write(text + " ")
        self.out.write("\n\n")
        self.out.flush()
