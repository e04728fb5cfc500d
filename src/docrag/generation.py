from __future__ import annotations

import json
import logging
import os
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from dotenv import load_dotenv

from .errors import ConfigurationError, GenerationBackendError

logger = logging.getLogger(__name__)

DEFAULT_CHAT_URL = "https://router.huggingface.co/v1/chat/completions"
DEFAULT_CHAT_MODEL = "Qwen/Qwen2.5-72B-Instruct"

SYSTEM_PROMPT = (
    "You are a helpful assistant. Answer the question using only the information provided.\n"
    "If the information is not enough to answer, say so clearly.\n"
    "Keep the answer short and accurate."
)

CONTEXT_SEPARATOR = "\n\n---\n\n"


class GenerationBackend(Protocol):
    def generate(self, query: str, passages: Sequence[str]) -> str: ...


def build_user_prompt(query: str, passages: Sequence[str]) -> str:
    context = CONTEXT_SEPARATOR.join(passages)
    return (
        "INFORMATION FROM THE DOCUMENT:\n"
        f"{context}\n\n"
        f"QUESTION: {query}\n\n"
        "Answer the question based on the information above."
    )


def _post_json(url: str, payload: dict, headers: dict[str, str], timeout_s: float) -> Any:
    """POST a JSON body and decode the JSON reply.

    Failures become ``GenerationBackendError`` with a message that never
    echoes request headers.
    """
    data = json.dumps(payload).encode("utf-8")
    req = urllib.request.Request(url, data=data, headers={"Content-Type": "application/json", **headers})
    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as e:
        detail = _provider_error(e)
        logger.error("Generation backend returned HTTP %s", e.code)
        raise GenerationBackendError(
            f"Generation backend error (HTTP {e.code}){': ' + detail if detail else ''}",
            details={"status": e.code},
        ) from e
    except (urllib.error.URLError, TimeoutError, OSError) as e:
        logger.error("Generation backend unreachable: %s", type(e).__name__)
        raise GenerationBackendError(
            f"Could not reach the generation backend ({type(e).__name__})"
        ) from e

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise GenerationBackendError("Generation backend returned invalid JSON") from e


def _provider_error(err: urllib.error.HTTPError) -> str:
    """Best-effort short error text from the provider's JSON error body."""
    try:
        body = json.loads(err.read().decode("utf-8", errors="replace"))
    except (OSError, ValueError, AttributeError):
        return err.reason if isinstance(err.reason, str) else ""
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        error = error.get("message")
    if isinstance(error, str):
        return error[:200]
    return err.reason if isinstance(err.reason, str) else ""


@dataclass
class ChatCompletionsGenerator:
    """OpenAI-compatible ``/chat/completions`` client (Hugging Face router by default)."""

    api_key: str
    model: str = DEFAULT_CHAT_MODEL
    api_url: str = DEFAULT_CHAT_URL
    max_tokens: int = 1000
    temperature: float = 0.7
    timeout_s: float = 60

    def generate(self, query: str, passages: Sequence[str]) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(query, passages)},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        obj = _post_json(
            self.api_url,
            payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout_s=self.timeout_s,
        )
        try:
            content = obj["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationBackendError("Generation backend returned no choices") from e
        if not isinstance(content, str) or not content.strip():
            raise GenerationBackendError("Generation backend returned an empty answer")
        return content.strip()


@dataclass
class OllamaGenerator:
    base_url: str = "http://localhost:11434"
    model: str = "llama3.1"
    timeout_s: int = 120

    def generate(self, query: str, passages: Sequence[str]) -> str:
        """Call Ollama /api/generate (non-streaming)."""
        url = self.base_url.rstrip("/") + "/api/generate"
        payload = {
            "model": self.model,
            "system": SYSTEM_PROMPT,
            "prompt": build_user_prompt(query, passages),
            "stream": False,
            "options": {
                "temperature": 0,
            },
        }
        obj = _post_json(url, payload, headers={}, timeout_s=self.timeout_s)
        answer = obj.get("response") if isinstance(obj, dict) else None
        if not isinstance(answer, str) or not answer.strip():
            raise GenerationBackendError("Generation backend returned an empty answer")
        return answer.strip()


def build_generator(cfg: dict | None) -> GenerationBackend | None:
    cfg = cfg or {}
    typ = str(cfg.get("type", "chat")).lower()

    if typ in ("none", "", "null", "off"):
        return None

    if typ in ("chat", "chat_completions", "huggingface", "hf", "openai"):
        api_key = str(cfg.get("api_key") or "")
        if not api_key:
            raise ConfigurationError("An API key is required for the chat completions backend", field="api_key")
        return ChatCompletionsGenerator(
            api_key=api_key,
            model=str(cfg.get("model") or DEFAULT_CHAT_MODEL),
            api_url=str(cfg.get("api_url") or DEFAULT_CHAT_URL),
            max_tokens=int(cfg.get("max_tokens", 1000)),
            temperature=float(cfg.get("temperature", 0.7)),
            timeout_s=float(cfg.get("timeout_s", 60)),
        )

    if typ == "ollama":
        return OllamaGenerator(
            base_url=str(cfg.get("base_url") or "http://localhost:11434"),
            model=str(cfg.get("model") or "llama3.1"),
            timeout_s=int(cfg.get("timeout_s", 120)),
        )

    raise ConfigurationError(f"Unknown generator type: {typ}", field="type")


def build_generator_from_env() -> GenerationBackend | None:
    load_dotenv()
    typ = os.getenv("DOCRAG_GENERATOR", "chat").lower()
    if typ == "ollama":
        return build_generator(
            {
                "type": "ollama",
                "base_url": os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"),
                "model": os.getenv("OLLAMA_MODEL", "llama3.1"),
                "timeout_s": os.getenv("OLLAMA_TIMEOUT_S", "120"),
            }
        )
    return build_generator(
        {
            "type": typ,
            "api_key": os.getenv("HUGGINGFACE_API_KEY", ""),
            "model": os.getenv("HUGGINGFACE_MODEL", DEFAULT_CHAT_MODEL),
            "api_url": os.getenv("HUGGINGFACE_API_URL", DEFAULT_CHAT_URL),
        }
    )
