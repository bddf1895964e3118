"""Byte encodings for report artifacts and replay input."""

from abc import ABC, abstractmethod
from pathlib import PurePath
from typing import Any

import orjson


class Serializer(ABC):
    """Turns report payloads into artifact bytes and back."""

    @abstractmethod
    def serialize(self, data: Any) -> bytes: ...

    @abstractmethod
    def deserialize(self, data: bytes | str) -> Any: ...


def _artifact_default(obj: Any) -> Any:
    # Sets sort and paths go POSIX so equal reports encode to equal bytes.
    if isinstance(obj, set | frozenset):
        return sorted(obj)
    if isinstance(obj, PurePath):
        return obj.as_posix()
    raise TypeError(f"{type(obj).__name__} is not JSON serializable")


class JsonSerializer(Serializer):
    """orjson encoding; ``indent=True`` pretty-prints for terminals."""

    def __init__(self, indent: bool = False) -> None:
        self.option = orjson.OPT_INDENT_2 if indent else 0

    def serialize(self, data: Any) -> bytes:
        return orjson.dumps(data, default=_artifact_default, option=self.option)

    def deserialize(self, data: bytes | str) -> Any:
        return orjson.loads(data)
