#!/usr/bin/env python3
"""Check one wiki document for markup defects and optionally fix them.

Reads the document text, runs the selected detectors and writes a JSON
report to stdout. With ``--fix`` the automatic rewrites are applied until
the text stops changing and the fixed text is written to ``--output`` (or
to stdout in place of the report).

Usage:
    # Report every defect the built-in detectors know about
    python3 scripts/check_document.py --file page.wiki --title "Some page"

    # Only duplicate headings, limited to level-2 headings
    python3 scripts/check_document.py --file page.wiki --codes 092 \
      --param 092.max_level=2

    # Apply automatic fixes and write the result next to the input
    python3 scripts/check_document.py --file page.wiki --fix \
      --output page.fixed.wiki
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import orjson

from wikicheck.analysis import DocumentAnalysis, PageMetadata
from wikicheck.runner import Runner, available_codes, build_detectors

log = logging.getLogger("check_document")


def dump_json(obj: object) -> None:
    sys.stdout.buffer.write(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    sys.stdout.buffer.write(b"\n")


def parse_params(items: list[str]) -> dict[str, dict[str, str]]:
    """``CODE.name=value`` items into ``{code: {name: value}}``."""
    params: dict[str, dict[str, str]] = {}
    for item in items:
        key, sep, value = item.partition("=")
        code, dot, name = key.partition(".")
        if not sep or not dot or not code or not name:
            raise ValueError(f"expected CODE.name=value, got {item!r}")
        params.setdefault(code.strip(), {})[name.strip()] = value
    return params


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check one wiki document for markup defects."
    )
    parser.add_argument(
        "--file", required=True, type=Path, help="Path to the document text (UTF-8)"
    )
    parser.add_argument("--title", default="", help="Page title")
    parser.add_argument(
        "--namespace", type=int, default=0,
        help="Page namespace number (default: 0, articles)",
    )
    parser.add_argument(
        "--codes", default=None,
        help=f"Comma separated detector codes (default: all of {', '.join(available_codes())})",
    )
    parser.add_argument(
        "--param", action="append", default=[], metavar="CODE.name=value",
        help="Detector parameter; repeatable",
    )
    parser.add_argument(
        "--only-automatic", action="store_true",
        help="Restrict the report to defects with an automatic fix",
    )
    parser.add_argument(
        "--fix", action="store_true",
        help="Apply automatic fixes and write the fixed text",
    )
    parser.add_argument(
        "--output", type=Path, default=None,
        help="Where to write the fixed text (default: stdout)",
    )
    parser.add_argument(
        "--workers", type=int, default=None,
        help="Run detectors on a thread pool of this size",
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    try:
        text = args.file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Error: cannot read {args.file}: {exc}", file=sys.stderr)
        return 1

    try:
        params = parse_params(args.param)
        codes = None if args.codes is None else [
            c.strip() for c in args.codes.split(",") if c.strip()
        ]
        detectors = build_detectors(codes, params)
    except (KeyError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    analysis = DocumentAnalysis(text, PageMetadata(args.title, args.namespace))
    runner = Runner(detectors, max_workers=args.workers)

    if args.fix:
        fixed = runner.auto_fix(analysis)
        log.info(
            "Applied %s in %d pass(es)", ", ".join(fixed.applied) or "nothing", fixed.passes,
        )
        if args.output is not None:
            args.output.write_text(fixed.text, encoding="utf-8")
            dump_json({
                "status": "ok",
                "output": str(args.output),
                "applied": list(fixed.applied),
                "passes": fixed.passes,
                "converged": fixed.converged,
                "changed": fixed.text != text,
            })
        else:
            sys.stdout.write(fixed.text)
        print(
            f"Fixed {args.file}: {len(fixed.applied)} detector(s) applied",
            file=sys.stderr,
        )
        return 0

    report = runner.run(analysis, only_automatic=args.only_automatic)
    record = report.as_record()
    record["status"] = "ok" if not report.failures() else "partial"
    record["title"] = args.title
    record["namespace"] = args.namespace
    dump_json(record)
    print(
        f"Found {len(record['findings'])} finding(s) in {args.file}",
        file=sys.stderr,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
