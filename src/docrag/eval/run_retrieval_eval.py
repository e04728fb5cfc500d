from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

import yaml

from ..config import EngineConfig, load_config
from ..errors import DocRagError
from ..service import DocumentQAService
from .datasets import RetrievalQuestion, load_retrieval_questions
from .metrics import RetrievalMetrics, compute_metrics, first_hit_rank


def evaluate(
    service: DocumentQAService,
    questions: list[RetrievalQuestion],
    k: int = 5,
) -> tuple[RetrievalMetrics, list[dict]]:
    """Score retrieval on an already-ingested service. No generation calls."""
    first_ranks: list[int | None] = []
    per_q: list[dict] = []

    for q in questions:
        _, passages = service.queries.retrieve(q.question, k)
        hit_rank = first_hit_rank([p.content for p in passages], q.expected_text)
        first_ranks.append(hit_rank)
        per_q.append({
            "id": q.id,
            "question": q.question,
            "expected_text": q.expected_text,
            "first_correct_rank": hit_rank,
            "top_k": [
                {
                    "rank": rank,
                    "score": p.similarity,
                    "source_index": p.metadata.get("source_index"),
                    "line_from": p.metadata.get("line_from"),
                    "line_to": p.metadata.get("line_to"),
                }
                for rank, p in enumerate(passages, start=1)
            ],
        })

    return compute_metrics(first_ranks), per_q


def _write_run(run_dir: Path, config: EngineConfig, metrics: RetrievalMetrics, per_q: list[dict]) -> None:
    run_dir.mkdir(parents=True, exist_ok=True)
    engine_cfg = dict(asdict(config), separators=list(config.separators))
    artifacts = {
        "engine_config.yaml": yaml.safe_dump(engine_cfg, sort_keys=False),
        "metrics.json": json.dumps(asdict(metrics), indent=2),
        "per_question.json": json.dumps(per_q, indent=2, ensure_ascii=False),
    }
    for name, content in artifacts.items():
        (run_dir / name).write_text(content, encoding="utf-8")


def _append_leaderboard(path: Path, row: dict) -> None:
    is_new = not path.exists()
    with path.open("a", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(row))
        if is_new:
            writer.writeheader()
        writer.writerow(row)


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Score TF-IDF passage retrieval for one document")
    p.add_argument("--doc", required=True, help="PDF or text document to ingest")
    p.add_argument("--questions", required=True, help="JSONL rows with id, question, expected_text")
    p.add_argument("--config", help="YAML engine config (chunk_size, chunk_overlap, ...)")
    p.add_argument("--k", type=int, default=5, help="Passages retrieved per question (default 5)")
    p.add_argument("--outdir", default="results/runs", help="Where run directories and leaderboard.csv go")
    args = p.parse_args(argv)
    logging.basicConfig(level=logging.WARNING)

    try:
        config = load_config(args.config) if args.config else EngineConfig()
        service = DocumentQAService(config=config)
        summary = service.ingest_file(args.doc)
        questions = load_retrieval_questions(Path(args.questions))
        metrics, per_q = evaluate(service, questions, k=args.k)
    except DocRagError as e:
        print(f"error[{e.kind}]: {e.message}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"error[io_error]: {e}", file=sys.stderr)
        return 2

    outdir = Path(args.outdir)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = outdir / f"docrag_{stamp}"
    _write_run(run_dir, config, metrics, per_q)

    leaderboard = outdir / "leaderboard.csv"
    _append_leaderboard(
        leaderboard,
        {
            "run_id": stamp,
            "file_name": summary.file_name,
            "chunk_size": summary.chunk_size,
            "chunk_overlap": summary.chunk_overlap,
            "num_chunks": summary.total_chunks,
            "vocabulary_size": summary.vocabulary_size,
            "k": args.k,
            "hit@1": round(metrics.hit_at_1, 4),
            "hit@3": round(metrics.hit_at_3, 4),
            "hit@5": round(metrics.hit_at_5, 4),
            "mrr": round(metrics.mrr, 4),
            "avg_first_rank": metrics.avg_first_rank,
            "run_dir": str(run_dir),
        },
    )

    print(f"Evaluated {metrics.n} questions against {summary.file_name} "
          f"({summary.total_chunks} chunks, {summary.vocabulary_size} terms)")
    print(f"  hit@1={metrics.hit_at_1:.3f} hit@3={metrics.hit_at_3:.3f} hit@5={metrics.hit_at_5:.3f}")
    print(f"  mrr={metrics.mrr:.3f} avg_first_rank={metrics.avg_first_rank}")
    print(f"Artifacts: {run_dir}")
    print(f"Leaderboard: {leaderboard}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
