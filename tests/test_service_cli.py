import json

import pytest

from conftest import PARAGRAPHS
from docrag.cli import main, truncate_for_display
from docrag.errors import EmptyInputError


@pytest.fixture
def doc_path(tmp_path, sample_text):
    path = tmp_path / "science.txt"
    path.write_text(sample_text, encoding="utf-8")
    return path


def test_status_before_and_after_ingest(service, sample_text):
    assert service.status().to_dict() == {"loaded": False, "fileName": None}

    service.ingest(sample_text, "science.txt", chunk_size=100, chunk_overlap=0)

    assert service.status().to_dict() == {"loaded": True, "fileName": "science.txt"}
    service.clear()
    service.clear()
    assert service.status().loaded is False


def test_ingest_file_uses_file_name(service, doc_path):
    summary = service.ingest_file(doc_path, chunk_size=100, chunk_overlap=20)

    assert summary.to_dict() == {
        "fileName": "science.txt",
        "totalChunks": len(PARAGRAPHS),
        "vocabularySize": summary.vocabulary_size,
        "chunkSize": 100,
        "chunkOverlap": 20,
        "textLength": doc_path.stat().st_size,
    }


def test_ingest_empty_file(service, tmp_path):
    path = tmp_path / "empty.txt"
    path.write_text("  \n\n ", encoding="utf-8")

    with pytest.raises(EmptyInputError):
        service.ingest_file(path)


def test_truncate_for_display():
    assert truncate_for_display("short") == "short"
    assert truncate_for_display("x" * 200) == "x" * 200
    assert truncate_for_display("x" * 201) == "x" * 200 + "..."


def test_cli_ask_json(doc_path, capsys):
    code = main([
        "ask", "--doc", str(doc_path), "--chunk-size", "100", "--chunk-overlap", "20",
        "--no-generate", "--json", "-q", "volcanoes magma", "-q", "coral reefs", "--k", "2",
    ])

    assert code == 0
    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert [r["query"] for r in lines] == ["volcanoes magma", "coral reefs"]
    assert lines[0]["rankedPassages"][0]["content"] == PARAGRAPHS[1]
    assert lines[1]["rankedPassages"][0]["content"] == PARAGRAPHS[4]
    assert all(len(r["rankedPassages"]) == 2 for r in lines)
    assert all(r["generatedAnswer"] is None and r["fileName"] == "science.txt" for r in lines)


def test_cli_ask_text(doc_path, capsys):
    code = main([
        "ask", "--doc", str(doc_path), "--chunk-size", "100", "--chunk-overlap", "0",
        "--no-generate", "-q", "castles archers",
    ])

    out = capsys.readouterr().out
    assert code == 0
    assert "Loaded science.txt: 5 chunks" in out
    assert "=== castles archers ===" in out
    assert PARAGRAPHS[2] in out


def test_cli_inspect(doc_path, capsys):
    code = main(["inspect", "--doc", str(doc_path), "--chunk-size", "100", "--chunk-overlap", "0", "--limit", "2"])

    out = capsys.readouterr().out
    assert code == 0
    assert "totalChunks: 5" in out
    assert "--- chunk 0 (lines 1-1) ---" in out
    assert "--- chunk 1 (lines 3-3) ---" in out
    assert "--- chunk 2" not in out


def test_cli_inspect_json(doc_path, capsys):
    assert main(["inspect", "--doc", str(doc_path), "--json"]) == 0

    summary = json.loads(capsys.readouterr().out)
    assert summary["totalChunks"] == 1
    assert summary["chunkSize"] == 1000


def test_cli_rejects_bad_overlap(doc_path, capsys):
    code = main(["inspect", "--doc", str(doc_path), "--chunk-size", "100", "--chunk-overlap", "100"])

    assert code == 2
    assert "error[configuration_error]" in capsys.readouterr().err


def test_cli_rejects_bad_k(doc_path, capsys):
    code = main(["ask", "--doc", str(doc_path), "--no-generate", "-q", "magma", "--k", "11"])

    assert code == 2
    assert "error[configuration_error]" in capsys.readouterr().err


def test_cli_missing_document(tmp_path, capsys):
    code = main(["inspect", "--doc", str(tmp_path / "nope.txt")])

    assert code == 2
    assert "error[io_error]: cannot read nope.txt" in capsys.readouterr().err
