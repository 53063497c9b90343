"""Batch transcription of WAV files against one shared model."""
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, TextIO, Union

from .audio import load_wav
from .backends.base import RecognizerModel, RecognizerParams
from .emitter import SegmentEmitter
from .errors import TranscriptionError
from .formatter import render_output
from .session import TranscriptionSession


@dataclass
class OutputSettings:
    """Output options shared by the batch and streaming transports."""

    format: str = "text"
    tokens: bool = False
    colorize: bool = False
    out: TextIO = field(default_factory=lambda: sys.stdout)
    results: TextIO = field(default_factory=lambda: sys.stdout)

    @classmethod
    def from_config(cls, config: Dict[str, Any], out: Optional[TextIO] = None) -> "OutputSettings":
        section = config.get("output", {})
        return cls(
            format=section.get("format", "text"),
            tokens=bool(section.get("tokens", False)),
            colorize=bool(section.get("colorize", False)),
            out=out or sys.stdout,
        )


def process_file(
    model: RecognizerModel,
    path: Union[str, Path],
    params: RecognizerParams,
    settings: OutputSettings,
) -> None:
    """Transcribe one file with a fresh session; errors propagate to the caller."""
    with TranscriptionSession.open(model, params, out=settings.out) as session:
        settings.out.write(f'Loading "{path}"\n')
        samples = load_wav(path)

        emitter = SegmentEmitter(
            settings.out,
            show_tokens=settings.tokens,
            colorize_tokens=settings.colorize,
            is_text=session.is_text,
        )

        settings.out.write(f'  ...processing "{path}"\n')
        settings.out.flush()
        session.reset_timings()
        session.process(samples, emitter if emitter.active else None)
        session.print_timings()

        render_output(
            settings.format,
            settings.results,
            session.drain_segments(),
            colorize_tokens=settings.colorize,
            is_text=session.is_text,
        )


def run_batch(
    model: RecognizerModel,
    paths: Iterable[Union[str, Path]],
    params: RecognizerParams,
    settings: OutputSettings,
) -> int:
    """Process files in order; a failing file is reported and skipped.

    Returns:
        Number of files that failed
    """
    failures = 0
    for path in paths:
        try:
            process_file(model, path, params, settings)
        except (TranscriptionError, OSError) as e:
            failures += 1
            print(f"[ERR] {path}: {e}", file=sys.stderr)
    return failures
