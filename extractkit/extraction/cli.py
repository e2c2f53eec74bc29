"""CLI harness for the extraction orchestrator: extract, batch-submit, batch-poll, backends."""
from __future__ import annotations

import argparse
import asyncio
import importlib
import json
import logging
import sys
from pathlib import Path

from extractkit.extraction.errors import ConfigurationError, ExtractionError
from extractkit.extraction.orchestrator import ExtractionOrchestrator
from extractkit.extraction.routing import ExtractionRouter
from extractkit.extraction.schema import PydanticSchema, SchemaDescriptor
from extractkit.extraction.settings import ExtractionSettings
from extractkit.llm.errors import BackendError


def load_schema(ref: str) -> SchemaDescriptor:
    """Resolve ``package.module:Name`` to a SchemaDescriptor (BaseModel subclasses are wrapped)."""
    module_name, _, attr = ref.partition(":")
    if not module_name or not attr:
        raise ConfigurationError(f"Schema reference must look like 'module:Name', got {ref!r}")
    try:
        obj = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot load schema {ref!r}: {e}") from e
    if isinstance(obj, SchemaDescriptor):
        return obj
    return PydanticSchema(obj)


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def _cmd_extract(args: argparse.Namespace) -> int:
    schema = load_schema(args.schema)
    text = _read_text(args.file)

    async def run():
        async with ExtractionOrchestrator(ExtractionSettings()) as orch:
            if args.backend:
                return await orch.analyze_text_with_backend(schema, text, args.backend)
            return await orch.analyze_text(schema, text)

    result = asyncio.run(run())
    _print_json(result.model_dump())
    return 0 if result.success else 2


def _cmd_batch_submit(args: argparse.Namespace) -> int:
    schema = load_schema(args.schema)
    texts = [_read_text(p) for p in args.files]
    refs = args.ref or None

    async def run():
        async with ExtractionOrchestrator(ExtractionSettings()) as orch:
            return await orch.request_batch_analysis(texts, schema, refs, backend_id=args.backend)

    submission = asyncio.run(run())
    _print_json(submission.model_dump())
    print(f"\nPoll: python -m extractkit.extraction.cli batch-poll --schema {args.schema} --request-id {submission.request_id}")
    return 0


def _cmd_batch_poll(args: argparse.Namespace) -> int:
    schema = load_schema(args.schema)

    async def run():
        async with ExtractionOrchestrator(ExtractionSettings()) as orch:
            return await orch.poll_batch_analysis(args.request_id, schema, backend_id=args.backend)

    status = asyncio.run(run())
    _print_json(status.model_dump(exclude_none=True))
    return 0


def _cmd_backends(args: argparse.Namespace) -> int:
    for backend_id in ExtractionRouter(ExtractionSettings()).available_backends():
        print(backend_id)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Structured extraction CLI")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_extract = sub.add_parser("extract", help="Extract one document into the schema")
    p_extract.add_argument("--schema", "-s", required=True, help="Schema as module:Name")
    p_extract.add_argument("--backend", "-b", default=None, help="Use one backend instead of the cascade")
    p_extract.add_argument("file", help="Text file to extract from ('-' for stdin)")
    p_extract.set_defaults(func=_cmd_extract)

    p_submit = sub.add_parser("batch-submit", help="Queue several documents as one batch")
    p_submit.add_argument("--schema", "-s", required=True, help="Schema as module:Name")
    p_submit.add_argument("--backend", "-b", default=None, help="Batch backend (default: settings)")
    p_submit.add_argument("--ref", action="append", help="External reference per file (repeat, in file order)")
    p_submit.add_argument("files", nargs="+", help="Text files, one batch item each")
    p_submit.set_defaults(func=_cmd_batch_submit)

    p_poll = sub.add_parser("batch-poll", help="Poll a queued batch")
    p_poll.add_argument("--schema", "-s", required=True, help="Schema as module:Name")
    p_poll.add_argument("--backend", "-b", default=None, help="Batch backend (default: settings)")
    p_poll.add_argument("--request-id", "-r", required=True, help="Request id from batch-submit")
    p_poll.set_defaults(func=_cmd_batch_poll)

    p_backends = sub.add_parser("backends", help="List configured backend ids")
    p_backends.set_defaults(func=_cmd_backends)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (ExtractionError, BackendError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
