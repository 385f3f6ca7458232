"""Persisted WhatsApp credentials.

The credential blob is owned by the transport library; this store only
knows where it lives, whether it exists and how to wipe it.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path

import aiofiles.os

LOGGER = logging.getLogger(__name__)


class CredentialStore:
	"""Directory-backed credential storage for the single session."""

	def __init__(self, auth_dir: Path | str) -> None:
		self.auth_dir = Path(auth_dir)

	async def ensure(self) -> Path:
		"""Create the credential directory if needed and return it."""
		await aiofiles.os.makedirs(self.auth_dir, exist_ok=True)
		return self.auth_dir

	async def exists(self) -> bool:
		"""Return True when a non-empty credential directory is present."""
		if not await aiofiles.os.path.isdir(self.auth_dir):
			return False
		return bool(await aiofiles.os.listdir(self.auth_dir))

	async def clear(self) -> bool:
		"""Delete all persisted credentials.

		Returns:
			True if something was removed, False if there was nothing to delete.
		"""
		if not await aiofiles.os.path.exists(self.auth_dir):
			return False
		# rmtree is blocking -> run in thread
		await asyncio.to_thread(shutil.rmtree, self.auth_dir, True)
		LOGGER.info("Session credentials removed from %s", self.auth_dir)
		return True
