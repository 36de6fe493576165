from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import structlog

from .errors import ResourceNotFoundError

log = structlog.get_logger()


@dataclass(frozen=True)
class StoredFile:
    path: str
    name: str
    basename: str


class DocumentStore(Protocol):
    def files(self) -> Iterable[StoredFile]: ...

    def read(self, file: StoredFile) -> str: ...


class DirectoryStore:
    """Documents under a local folder, addressed by POSIX paths relative to `root`."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def files(self) -> Iterable[StoredFile]:
        if not self.root.is_dir():
            return []
        found = []
        for p in sorted(self.root.rglob("*")):
            if not p.is_file():
                continue
            rel = p.relative_to(self.root)
            if any(part.startswith(".") for part in rel.parts):
                continue
            found.append(StoredFile(path=rel.as_posix(), name=p.name, basename=p.stem))
        return found

    def read(self, file: StoredFile) -> str:
        return (self.root / file.path).read_text(encoding="utf-8")


def find_style_file(store: DocumentStore, reference: str) -> StoredFile:
    for f in store.files():
        if reference in (f.path, f.name, f.basename):
            return f
    raise ResourceNotFoundError(reference, f"Writing style file not found: {reference}")


def read_writing_style(store: DocumentStore, reference: str) -> str:
    f = find_style_file(store, reference)
    text = store.read(f)
    log.info("writing_style_loaded", path=f.path, chars=len(text))
    return text
