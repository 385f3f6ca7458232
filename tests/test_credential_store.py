import pytest

from services.whatsapp.credential_store import CredentialStore


@pytest.mark.asyncio
async def test_exists_only_when_directory_has_files(tmp_path):
    store = CredentialStore(tmp_path / "auth")
    assert await store.exists() is False

    await store.ensure()
    assert await store.exists() is False

    (tmp_path / "auth" / "session.sqlite3").write_bytes(b"creds")
    assert await store.exists() is True


@pytest.mark.asyncio
async def test_clear_removes_directory(tmp_path):
    store = CredentialStore(tmp_path / "auth")
    await store.ensure()
    (tmp_path / "auth" / "session.sqlite3").write_bytes(b"creds")

    assert await store.clear() is True
    assert not (tmp_path / "auth").exists()
    assert await store.clear() is False
