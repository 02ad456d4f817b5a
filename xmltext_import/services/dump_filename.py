from __future__ import annotations

import os
from dataclasses import dataclass

DUMP_EXTENSION = "xml"
DEFAULT_TAG = "ezxmltext"
_TOKEN_COUNT = 5


@dataclass(frozen=True)
class FileAddress:
    object_id: str
    attribute_id: str
    version: str
    language_code: str

    def matches_object(self, content_object_id: str | None) -> bool:
        return content_object_id is None or content_object_id == self.object_id

    def __str__(self) -> str:
        return f"{self.object_id}/{self.attribute_id}/{self.version}/{self.language_code}"


def _is_numeric(token: str) -> bool:
    return token.isascii() and token.isdigit()


def is_dump_candidate(entry: os.DirEntry | os.PathLike | str) -> bool:
    if isinstance(entry, os.DirEntry):
        if not entry.is_file():
            return False
        name = entry.name
    else:
        if not os.path.isfile(entry):
            return False
        name = os.path.basename(os.fspath(entry))
    _, ext = os.path.splitext(name)
    return ext[1:] == DUMP_EXTENSION


def parse_dump_filename(filename: str, tag: str = DEFAULT_TAG) -> FileAddress | None:
    """Decode ``<tag>_<object>_<attribute>_<version>_<language>.xml``.

    Returns ``None`` for anything that does not match exactly; never raises.
    """
    name = os.path.basename(filename)
    suffix = f".{DUMP_EXTENSION}"
    if name.endswith(suffix):
        name = name[: -len(suffix)]

    tokens = name.split("_")
    if len(tokens) != _TOKEN_COUNT:
        return None
    if tokens[0] != tag:
        return None
    if not all(_is_numeric(token) for token in tokens[1:4]):
        return None
    if tokens[4] == "":
        return None

    return FileAddress(
        object_id=tokens[1],
        attribute_id=tokens[2],
        version=tokens[3],
        language_code=tokens[4],
    )
