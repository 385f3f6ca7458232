"""Environment-driven configuration for the WhatsApp product assistant."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

VECTOR_BACKENDS = ("pinecone", "memory")


@dataclass(frozen=True)
class Settings:
    """Configuration container for remote services, session and runtime limits."""

    openai_api_key: str
    embedding_model: str
    chat_model: str
    vector_backend: str
    pinecone_api_key: Optional[str]
    pinecone_index: Optional[str]
    pinecone_namespace: Optional[str]
    match_threshold: float
    retrieval_top_k: int
    remote_timeout_s: float
    reconnect_delay_s: float
    auth_dir: Path
    context_capacity: int
    log_level: str
    port: int


def _require(env: Mapping[str, str], name: str) -> str:
    value = (env.get(name) or "").strip()
    if not value:
        raise RuntimeError(f"{name} environment variable is not set")
    return value


def _number(env: Mapping[str, str], name: str, default: str, cast):
    raw = (env.get(name) or default).strip()
    try:
        return cast(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} is not a valid {cast.__name__}") from exc


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from environment variables.

    Args:
        env: Optional mapping used instead of `os.environ` (handy for tests).

    Returns:
        A frozen Settings instance.

    Raises:
        RuntimeError: If a required value is missing or a numeric value cannot be parsed.
    """
    env = os.environ if env is None else env

    vector_backend = (env.get("VECTOR_BACKEND") or "pinecone").strip().lower()
    if vector_backend not in VECTOR_BACKENDS:
        raise RuntimeError(f"VECTOR_BACKEND must be one of {', '.join(VECTOR_BACKENDS)}, got {vector_backend!r}")

    pinecone_api_key = None
    pinecone_index = None
    if vector_backend == "pinecone":
        pinecone_api_key = _require(env, "PINECONE_API_KEY")
        pinecone_index = _require(env, "PINECONE_INDEX")

    match_threshold = _number(env, "MATCH_THRESHOLD", "0.5", float)
    if not 0.0 <= match_threshold <= 1.0:
        raise RuntimeError(f"MATCH_THRESHOLD must be between 0 and 1, got {match_threshold}")

    top_k = _number(env, "RETRIEVAL_TOP_K", "3", int)
    if top_k < 1:
        raise RuntimeError("RETRIEVAL_TOP_K must be at least 1")

    return Settings(
        openai_api_key=_require(env, "OPENAI_API_KEY"),
        embedding_model=env.get("OPENAI_EMBEDDING_MODEL") or "text-embedding-3-small",
        chat_model=env.get("OPENAI_CHAT_MODEL") or "gpt-4o-mini",
        vector_backend=vector_backend,
        pinecone_api_key=pinecone_api_key,
        pinecone_index=pinecone_index,
        pinecone_namespace=env.get("PINECONE_NAMESPACE") or None,
        match_threshold=match_threshold,
        retrieval_top_k=top_k,
        remote_timeout_s=_number(env, "REMOTE_TIMEOUT_S", "8", float),
        reconnect_delay_s=_number(env, "RECONNECT_DELAY_S", "2", float),
        auth_dir=Path(env.get("AUTH_DIR") or "./auth_info").expanduser(),
        context_capacity=_number(env, "CONTEXT_CAPACITY", "1000", int),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        port=_number(env, "PORT", "3000", int),
    )
