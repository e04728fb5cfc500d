from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from ..errors import ConfigurationError


@dataclass
class RetrievalQuestion:
    id: str
    question: str
    expected_text: str


def load_jsonl(path: Path) -> list[dict]:
    items: list[dict] = []
    with path.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                items.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"{path.name}:{lineno} is not valid JSON", field="questions") from e
    return items


def load_retrieval_questions(path: Path) -> list[RetrievalQuestion]:
    out: list[RetrievalQuestion] = []
    for i, item in enumerate(load_jsonl(path), start=1):
        if not item.get("question") or not item.get("expected_text"):
            raise ConfigurationError(
                f"Question #{i} in {path.name} needs 'question' and 'expected_text'", field="questions"
            )
        out.append(
            RetrievalQuestion(
                id=str(item.get("id", i)),
                question=str(item["question"]),
                expected_text=str(item["expected_text"]),
            )
        )
    return out
