#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import logging
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)


def is_plain_name(name: str) -> bool:
    """True, если имя - уже basename без компонентов пути."""
    return bool(name) and name not in (".", "..") and "/" not in name and "\\" not in name


class LocalFileStore:
    """Хранилище загруженных файлов в локальном каталоге, ключ - имя файла.

    Хранятся только «плоские» имена: загрузка сводит имя к basename
    (safe_name), а exists/delete для имён с путём ничего не находят, чтобы
    документ "notes/a.txt" не задел файл "a.txt".
    """

    def __init__(self, root: str) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def safe_name(name: str) -> str:
        safe = Path(name.replace("\\", "/")).name
        if not is_plain_name(safe):
            raise ValueError(f"Invalid file name: {name!r}")
        return safe

    def path_for(self, name: str) -> Path:
        if not is_plain_name(name):
            raise ValueError(f"Invalid file name: {name!r}")
        return self.root / name

    def save(self, name: str, data: bytes) -> Path:
        path = self.path_for(name)
        path.write_bytes(data)
        logger.info("Stored %s (%d bytes)", path.name, len(data))
        return path

    def exists(self, name: str) -> bool:
        return is_plain_name(name) and self.path_for(name).is_file()

    def delete(self, name: str) -> bool:
        if not is_plain_name(name):
            return False
        path = self.path_for(name)
        if not path.is_file():
            return False
        path.unlink()
        return True

    def list(self) -> List[str]:
        return sorted(p.name for p in self.root.iterdir() if p.is_file())
