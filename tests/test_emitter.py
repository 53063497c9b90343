"""Tests for the live segment emitter."""
import io
from datetime import timedelta

from whisperwire.backends.base import Segment, Token, TokenKind
from whisperwire.colorize import colorize
from whisperwire.emitter import SegmentEmitter


def _segment(index=3):
    return Segment(
        index=index,
        start=timedelta(seconds=1.5, microseconds=700),
        end=timedelta(seconds=2.25),
        text=" good morning",
        tokens=(
            Token("[_BEG_]", 0.99, TokenKind.SPECIAL),
            Token(" good", 0.91),
            Token(" morning", 0.2),
        ),
    )


def _is_text(token):
    return token.kind is TokenKind.TEXT


def test_renders_header_tokens_and_blank_line():
    out = io.StringIO()
    emitter = SegmentEmitter(out, show_tokens=True, is_text=_is_text)

    emitter(_segment())

    assert out.getvalue() == "03 [  1.5s-> 2.25s] [_BEG_]  good  morning \n\n"


def test_colorizes_only_textual_tokens():
    out = io.StringIO()
    emitter = SegmentEmitter(out, show_tokens=True, colorize_tokens=True, is_text=_is_text)

    emitter(_segment())

    text = out.getvalue()
    assert "[_BEG_] " in text
    assert colorize(" good", 21) + " " in text
    assert colorize(" morning", 4) + " " in text


def test_pushes_raw_token_text_to_transport_in_order():
    out = io.StringIO()
    sent = []
    emitter = SegmentEmitter(out, transport=sent.append)

    emitter(_segment())
    emitter(_segment(index=4))

    assert sent == ["[_BEG_]", " good", " morning"] * 2
    assert out.getvalue() == ""


def test_transport_and_display_together():
    out = io.StringIO()
    sent = []
    emitter = SegmentEmitter(out, show_tokens=True, colorize_tokens=True, transport=sent.append)

    emitter(_segment())

    assert sent[1] == " good"
    assert "\x1b[" in out.getvalue()


def test_active_reflects_display_or_transport():
    out = io.StringIO()
    assert SegmentEmitter(out).active is False
    assert SegmentEmitter(out, show_tokens=True).active is True
    assert SegmentEmitter(out, transport=lambda text: None).active is True
