"""CLI wrapper for output_repair to emit a prepared payload as JSON."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .payload import CandidatePayload, PayloadShape
from .prepare import prepare_payload


def _read_file(path: Path) -> str:
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    return path.read_text(encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Normalize and repair generated text")
    parser.add_argument("--file", required=True, help="Path to the raw text ('-' for stdin)")
    parser.add_argument(
        "--shape",
        choices=[shape.value for shape in PayloadShape],
        default=PayloadShape.JSON_VALUE.value,
        help="Expected payload shape",
    )
    parser.add_argument("--verbatim", action="store_true", help="Skip prefix and fence stripping")
    parser.add_argument("--verbose", action="store_true", help="Enable debug output")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
        stream=sys.stderr,
    )

    try:
        raw = sys.stdin.read() if args.file == "-" else _read_file(Path(args.file))
    except OSError as exc:
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        return 1

    payload = CandidatePayload(text=raw, shape=PayloadShape(args.shape), verbatim=args.verbatim)
    result = prepare_payload(payload)
    print(json.dumps(result.to_dict(), ensure_ascii=False))
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
