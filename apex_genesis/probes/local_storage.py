from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import quote, unquote

import aiofiles
import aiofiles.os

from .base import Prober
from ..connection.types import ConnectionEntry, TransportKind

SENTINEL_KEY = "__apex_genesis_connection_test__"

# Keeps "." and ".." from naming the directory itself or its parent.
KEY_FILE_SUFFIX = ".value"


class FileKeyValueStore:
    """
    Persistent key-value storage backed by one file per key.

    Keys are percent-encoded into file names, so any two distinct keys map to
    distinct files and the original key can be recovered from the name.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _path_for(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}{KEY_FILE_SUFFIX}"

    @staticmethod
    def key_for(file_name: str) -> str:
        return unquote(file_name[: -len(KEY_FILE_SUFFIX)])

    async def keys(self) -> List[str]:
        if not await aiofiles.os.path.isdir(self.directory):
            return []
        names = await aiofiles.os.listdir(self.directory)
        return sorted(
            self.key_for(name) for name in names if name.endswith(KEY_FILE_SUFFIX)
        )

    async def set(self, key: str, value: str):
        await aiofiles.os.makedirs(self.directory, exist_ok=True)
        async with aiofiles.open(self._path_for(key), "w", encoding="utf-8") as file:
            await file.write(value)

    async def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not await aiofiles.os.path.exists(path):
            return None
        async with aiofiles.open(path, "r", encoding="utf-8") as file:
            return await file.read()

    async def delete(self, key: str):
        path = self._path_for(key)
        if await aiofiles.os.path.exists(path):
            await aiofiles.os.remove(path)


class LocalStorageProber(Prober):
    """Checks that local storage accepts a write followed by a delete."""

    kind = TransportKind.LOCAL_STORAGE

    def __init__(self, store: FileKeyValueStore, sentinel_key: str = SENTINEL_KEY):
        self.store = store
        self.sentinel_key = sentinel_key

    async def attempt(self, entry: ConnectionEntry) -> bool:
        await self.store.set(self.sentinel_key, "test")
        await self.store.delete(self.sentinel_key)
        return True
