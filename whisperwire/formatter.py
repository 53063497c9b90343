"""Rendering of drained segments as plain text or SRT subtitles."""
from datetime import timedelta
from typing import Callable, Iterable, Iterator, Optional, TextIO

from .backends.base import Segment, Token
from .colorize import colorize, probability_bucket
from .errors import FormattingError

_MS = timedelta(milliseconds=1)


def truncate_ms(value: timedelta) -> timedelta:
    """Drop sub-millisecond precision, rounding toward zero."""
    return timedelta(milliseconds=int(value / _MS))


def format_duration(value: timedelta) -> str:
    """Compact duration string such as 0s, 640ms, 1.5s, 1m2.345s or 1h0m0s."""
    total_ms = int(value / _MS)
    if total_ms == 0:
        return "0s"
    sign = "-" if total_ms < 0 else ""
    total_ms = abs(total_ms)
    if total_ms < 1000:
        return f"{sign}{total_ms}ms"

    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)

    text = f"{seconds}"
    if millis:
        text += f".{millis:03d}".rstrip("0")
    text += "s"
    if hours:
        text = f"{hours}h{minutes}m{text}"
    elif minutes:
        text = f"{minutes}m{text}"
    return sign + text


def srt_timestamp(value: timedelta) -> str:
    total_ms = int(value / _MS)
    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d},{millis:03d}"


def _drain(segments: Iterable[Segment]) -> Iterator[Segment]:
    """Iterate segments, converting iteration failures to FormattingError."""
    iterator = iter(segments)
    while True:
        try:
            segment = next(iterator)
        except StopIteration:
            return
        except Exception as e:
            raise FormattingError(f"reading segments failed: {e}") from e
        yield segment


def write_srt(out: TextIO, segments: Iterable[Segment]) -> None:
    for number, segment in enumerate(_drain(segments), start=1):
        out.write(f"{number}\n")
        out.write(f"{srt_timestamp(segment.start)} --> {srt_timestamp(segment.end)}\n")
        out.write(f"{segment.text}\n")
        out.write("\n")


def write_text(
    out: TextIO,
    segments: Iterable[Segment],
    colorize_tokens: bool = False,
    is_text: Optional[Callable[[Token], bool]] = None,
) -> None:
    for segment in _drain(segments):
        start = format_duration(truncate_ms(segment.start))
        end = format_duration(truncate_ms(segment.end))
        out.write(f"[{start:>6}->{end:>6}]")
        if colorize_tokens:
            for token in segment.tokens:
                if is_text is not None and not is_text(token):
                    continue
                out.write(" " + colorize(token.text, probability_bucket(token.probability)))
            out.write("\n")
        else:
            out.write(f"  {segment.text}\n")


def render_output(
    mode: str,
    out: TextIO,
    segments: Iterable[Segment],
    colorize_tokens: bool = False,
    is_text: Optional[Callable[[Token], bool]] = None,
) -> None:
    """Render segments in the configured output mode (text, srt or none)."""
    if mode == "srt":
        write_srt(out, segments)
    elif mode == "none":
        return
    else:
        write_text(out, segments, colorize_tokens=colorize_tokens, is_text=is_text)
    out.flush()
