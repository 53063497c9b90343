"""Main entry point for Whisperwire."""
import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .backends import ModelPool
from .backends.base import RecognizerParams
from .batch import OutputSettings, run_batch
from .config import OUTPUT_FORMATS, load_config
from .server import StreamingServer, TransportOptions


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="whisperwire",
        description="Whisperwire - transcribe WAV files or a live websocket audio stream",
    )
    parser.add_argument("files", nargs="*", help="Mono 16 kHz WAV files to transcribe")
    parser.add_argument("--config", type=Path, help="Path to config.toml")
    parser.add_argument("--model", help="Model directory or faster-whisper model name")
    parser.add_argument("--listen", help="Websocket listen address (host:port) when no files are given")
    parser.add_argument("--language", help="Spoken language code, or 'auto'")
    parser.add_argument("--translate", action="store_true", default=None, help="Translate to English")
    parser.add_argument("--offset", type=float, help="Start offset in seconds")
    parser.add_argument("--duration", type=float, help="Duration to process in seconds")
    parser.add_argument("--threads", type=int, help="CPU threads used by the model")
    parser.add_argument("--max-tokens", type=int, help="Maximum tokens per segment")
    parser.add_argument("--beam-size", type=int, help="Beam size for decoding")
    parser.add_argument("--tokens", action="store_true", default=None, help="Display tokens as they are recognized")
    parser.add_argument("--colorize", action="store_true", default=None, help="Colorize tokens by probability")
    parser.add_argument("--out", choices=OUTPUT_FORMATS, help="Output format")
    return parser


def apply_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Copy explicitly given CLI flags over the loaded configuration."""
    overrides = {
        ("model", "path"): args.model,
        ("model", "threads"): args.threads,
        ("server", "listen"): args.listen,
        ("recognizer", "language"): args.language,
        ("recognizer", "translate"): args.translate,
        ("recognizer", "offset"): args.offset,
        ("recognizer", "duration"): args.duration,
        ("recognizer", "max_tokens"): args.max_tokens,
        ("recognizer", "beam_size"): args.beam_size,
        ("output", "tokens"): args.tokens,
        ("output", "colorize"): args.colorize,
        ("output", "format"): args.out,
    }
    for (section, key), value in overrides.items():
        if value is not None:
            config.setdefault(section, {})[key] = value
    return config


def _open_destination(config: Dict[str, Any]):
    destination = str(config.get("output", {}).get("destination", "-")).strip()
    if destination in ("", "-"):
        return sys.stdout
    return open(destination, "a", encoding="utf-8")


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(path=args.config, raise_on_error=args.config is not None)
    except Exception as e:
        print(f"[ERR] Failed to load config: {e}", file=sys.stderr)
        sys.exit(1)
    config = apply_overrides(config, args)

    if not str(config["model"].get("path", "")).strip():
        print("[ERR] Use --model to specify which model to use", file=sys.stderr)
        sys.exit(1)

    files = list(args.files)
    if not files:
        print("[INFO] No input files specified", file=sys.stderr)
        if not str(config["server"].get("listen", "")).strip():
            print("[ERR] Use --listen to specify the listening interface", file=sys.stderr)
            sys.exit(1)

    out = _open_destination(config)
    settings = OutputSettings.from_config(config, out=out)
    pool = ModelPool()

    try:
        if files:
            try:
                model = pool.get(config)
            except Exception as e:
                print(f"[ERR] {e}", file=sys.stderr)
                sys.exit(1)
            failures = run_batch(model, files, RecognizerParams.from_config(config), settings)
            if failures:
                print(f"[WARN] {failures} of {len(files)} file(s) failed", file=sys.stderr)
        else:
            try:
                transport = TransportOptions.from_config(config)
            except ValueError as e:
                print(f"[ERR] {e}", file=sys.stderr)
                sys.exit(1)
            StreamingServer(config, pool, transport, settings=settings).run()
    except KeyboardInterrupt:
        print("\n[INFO] Interrupted by user")
    except Exception as e:
        print(f"\n[ERR] Fatal error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        pool.close_all()
        if out is not sys.stdout:
            out.close()


if __name__ == "__main__":
    main()
