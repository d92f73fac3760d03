"""CLI entrypoints for guidegen commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import yaml

from .config import ConfigError
from .docs import DEFAULT_FILENAME, find_nearest_document
from .errors import InvalidProposal, IOFailure, OutputUnwritable
from .logging import configure_logging
from .orchestrator import Orchestrator

EXIT_INVALID = 1
EXIT_UNREADABLE = 2
EXIT_UNWRITABLE = 3


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_json_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON instead of the default text output.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="guidegen",
        description="Catalog existing functionality, score extend-or-create proposals and generate agent guides.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write DEBUG-level logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Build the entity catalog for a repository and print a summary.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_json_option(analyze_parser)
    analyze_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )

    score_parser = subparsers.add_parser(
        "score",
        help="Recommend whether to extend existing code or create new code for a proposal.",
    )
    _add_verbose_option(score_parser, suppress_default=True)
    _add_json_option(score_parser)
    score_parser.add_argument("proposal", help="Path to a YAML or JSON change proposal.")
    score_parser.add_argument(
        "--repo",
        default=None,
        help="Repository to match against (overrides the proposal's own 'repo' key).",
    )

    generate_parser = subparsers.add_parser(
        "generate-docs",
        help="Write the hierarchy of agent guidance documents for a repository.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    generate_parser.add_argument("path", help="Path to the repository root.")
    generate_parser.add_argument("out_dir", help="Directory that receives the generated documents.")

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Print the generated document that governs a file.",
    )
    _add_verbose_option(resolve_parser, suppress_default=True)
    resolve_parser.add_argument("out_dir", help="Directory holding generated documents.")
    resolve_parser.add_argument("file_path", help="Repository-relative path of the file.")
    resolve_parser.add_argument(
        "--filename",
        default=DEFAULT_FILENAME,
        help=f"Document filename to look for (defaults to {DEFAULT_FILENAME}).",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service (requires the 'service' extra).",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for guidegen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    except OutputUnwritable as exc:
        parser.exit(EXIT_UNWRITABLE, f"{exc}\n")

    orchestrator = Orchestrator()

    if args.command == "analyze":
        try:
            catalog = orchestrator.run_analyze(args.path)
        except IOFailure as exc:
            parser.exit(EXIT_UNREADABLE, f"{exc}\n")
        summary = catalog.summary()
        if args.json:
            summary["skipped_files"] = [
                {"path": item.path, "reason": item.reason} for item in catalog.skipped
            ]
            print(json.dumps(summary, indent=2))
        else:
            print(f"Entities: {summary['entities']} ({summary['skipped']} files skipped)")
            for kind, count in summary["kinds"].items():
                print(f"  {kind}: {count}")
            if summary["domains"]:
                print("Domains: " + ", ".join(summary["domains"]))
    elif args.command == "score":
        try:
            recommendation = orchestrator.run_score(args.proposal, repo=args.repo)
        except InvalidProposal as exc:
            message = "\n".join(f"  - {problem}" for problem in exc.problems)
            parser.exit(EXIT_INVALID, f"Invalid proposal:\n{message}\n")
        except IOFailure as exc:
            parser.exit(EXIT_UNREADABLE, f"{exc}\n")
        payload = recommendation.to_dict()
        if args.json:
            print(json.dumps(payload, indent=2))
        else:
            print(yaml.safe_dump(payload, sort_keys=False), end="")
    elif args.command == "generate-docs":
        try:
            outcome = orchestrator.run_generate(args.path, args.out_dir)
        except OutputUnwritable as exc:
            parser.exit(EXIT_UNWRITABLE, f"{exc}\n")
        except IOFailure as exc:
            parser.exit(EXIT_UNREADABLE, f"{exc}\n")
        except ConfigError as exc:
            parser.exit(EXIT_INVALID, f"guidegen generate-docs failed: {exc}\n")
        for path in outcome.written:
            print(_relativize(path))
        for warning in outcome.tree.warnings:
            print(f"warning: {warning}", file=sys.stderr)
    elif args.command == "resolve":
        document = find_nearest_document(Path(args.out_dir), args.file_path, args.filename)
        if document is None:
            parser.exit(EXIT_INVALID, f"No {args.filename} governs {args.file_path}\n")
        print(_relativize(document))
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
