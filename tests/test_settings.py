from pathlib import Path

import pytest

from utils.settings import load_settings

BASE_ENV = {"OPENAI_API_KEY": "sk-test", "PINECONE_API_KEY": "pc-test", "PINECONE_INDEX": "products"}


def test_defaults():
    settings = load_settings(dict(BASE_ENV))
    assert settings.vector_backend == "pinecone"
    assert settings.match_threshold == 0.5
    assert settings.reconnect_delay_s == 2.0
    assert settings.remote_timeout_s == 8.0
    assert settings.auth_dir == Path("./auth_info")
    assert settings.port == 3000
    assert settings.log_level == "INFO"


def test_overrides():
    env = dict(BASE_ENV, MATCH_THRESHOLD="0.7", LOG_LEVEL="debug", AUTH_DIR="/tmp/wa", PINECONE_NAMESPACE="shop")
    settings = load_settings(env)
    assert settings.match_threshold == 0.7
    assert settings.log_level == "DEBUG"
    assert settings.auth_dir == Path("/tmp/wa")
    assert settings.pinecone_namespace == "shop"


def test_missing_openai_key_is_fatal():
    env = dict(BASE_ENV)
    env.pop("OPENAI_API_KEY")
    with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
        load_settings(env)


def test_pinecone_settings_required_for_pinecone_backend():
    with pytest.raises(RuntimeError, match="PINECONE_API_KEY"):
        load_settings({"OPENAI_API_KEY": "sk-test"})


def test_memory_backend_needs_no_pinecone():
    settings = load_settings({"OPENAI_API_KEY": "sk-test", "VECTOR_BACKEND": "memory"})
    assert settings.pinecone_api_key is None


@pytest.mark.parametrize("name,value", [("MATCH_THRESHOLD", "high"), ("MATCH_THRESHOLD", "1.5"), ("PORT", "http")])
def test_invalid_numbers_are_fatal(name, value):
    with pytest.raises(RuntimeError):
        load_settings(dict(BASE_ENV, **{name: value}))


def test_unknown_backend_is_fatal():
    with pytest.raises(RuntimeError, match="VECTOR_BACKEND"):
        load_settings(dict(BASE_ENV, VECTOR_BACKEND="faiss"))
