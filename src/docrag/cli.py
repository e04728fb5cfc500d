from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable

from .config import EngineConfig, load_config
from .errors import ConfigurationError, DocRagError, EmptyInputError, GenerationBackendError
from .generation import build_generator_from_env
from .pipeline import QueryResult, RankedPassage
from .service import DocumentQAService

DISPLAY_LIMIT = 200


def truncate_for_display(text: str, limit: int = DISPLAY_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def _print_passages(passages: Iterable[RankedPassage]) -> None:
    for rank, p in enumerate(passages, start=1):
        print(f"  [{rank}] similarity={p.similarity:.4f}  chunk={p.metadata.get('source_index')}")
        print(f"      {truncate_for_display(p.content)}")


def _print_result(result: QueryResult) -> None:
    print(f"=== {result.query} ===")
    if result.answer is not None:
        print(result.answer)
        print()
    print(f"Sources from {result.file_name}:")
    _print_passages(result.passages)


def _questions(args: argparse.Namespace) -> Iterable[str]:
    if args.question:
        yield from args.question
        return
    for line in sys.stdin:
        line = line.strip()
        if line:
            yield line


def _build_service(args: argparse.Namespace, with_generator: bool) -> DocumentQAService:
    config = load_config(args.config) if args.config else EngineConfig()
    generator = build_generator_from_env() if with_generator else None
    return DocumentQAService(generator=generator, config=config)


def cmd_ask(args: argparse.Namespace) -> int:
    service = _build_service(args, with_generator=not args.no_generate)
    summary = service.ingest_file(args.doc, chunk_size=args.chunk_size, chunk_overlap=args.chunk_overlap)
    if not args.json:
        print(f"Loaded {summary.file_name}: {summary.total_chunks} chunks, {summary.vocabulary_size} terms")

    status = 0
    for q in _questions(args):
        try:
            result = service.query(q, k=args.k)
        except GenerationBackendError as e:
            print(f"error[{e.kind}]: {e.message}", file=sys.stderr)
            if not args.json:
                _print_passages(e.passages)
            status = 1
            continue
        if args.json:
            print(json.dumps(result.to_dict(), ensure_ascii=False))
        else:
            _print_result(result)
    return status


def cmd_inspect(args: argparse.Namespace) -> int:
    service = _build_service(args, with_generator=False)
    summary = service.ingest_file(args.doc, chunk_size=args.chunk_size, chunk_overlap=args.chunk_overlap)
    if args.json:
        print(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2))
        return 0

    print("=== Ingest summary ===")
    for key, value in summary.to_dict().items():
        print(f"{key}: {value}")
    index = service.store.snapshot()
    for ic in index.chunks[: args.limit]:
        meta = ic.chunk.metadata
        print(f"--- chunk {meta['source_index']} (lines {meta['line_from']}-{meta['line_to']}) ---")
        print(truncate_for_display(ic.chunk.text))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docrag", description="Ask questions about a single document")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_doc_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--doc", required=True, help="Path to a PDF or text document")
        p.add_argument("--config", help="YAML engine config")
        p.add_argument("--chunk-size", type=int, default=None, help="Chunk size in characters (100-5000)")
        p.add_argument("--chunk-overlap", type=int, default=None, help="Overlap between chunks in characters")
        p.add_argument("--json", action="store_true", help="Print JSON instead of text")

    ask = sub.add_parser("ask", help="Ingest a document and answer questions")
    add_doc_args(ask)
    ask.add_argument("--question", "-q", action="append", help="Question to ask (repeatable; default: stdin)")
    ask.add_argument("--k", type=int, default=None, help="Passages to retrieve (1-10, default 4)")
    ask.add_argument("--no-generate", action="store_true", help="Only rank passages, skip the LLM call")
    ask.set_defaults(func=cmd_ask)

    inspect = sub.add_parser("inspect", help="Ingest a document and show its chunks")
    add_doc_args(inspect)
    inspect.add_argument("--limit", type=int, default=5, help="Chunks to preview (default 5)")
    inspect.set_defaults(func=cmd_inspect)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (ConfigurationError, EmptyInputError) as e:
        print(f"error[{e.kind}]: {e.message}", file=sys.stderr)
        return 2
    except DocRagError as e:
        print(f"error[{e.kind}]: {e.message}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"error[io_error]: cannot read {Path(args.doc).name}: {e.strerror or e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
