from __future__ import annotations

import json
from typing import Dict, Iterable, List, Literal, Mapping, Optional, TextIO, Union

from pydantic import BaseModel, Field, ValidationError

from .config import as_bool
from .errors import MissingFieldError, RequestError
from .results import ResultItem

FieldValue = Union[bool, str]


class HostRequest(BaseModel):
    kind: Literal["results", "action"]
    search_text: Optional[str] = None
    action: Optional[str] = None
    args: List[str] = Field(default_factory=list)
    form: Optional[Dict[str, FieldValue]] = None
    settings: Dict[str, FieldValue] = Field(default_factory=dict)


def parse_request(raw: str) -> HostRequest:
    try:
        return HostRequest.model_validate_json(raw)
    except ValidationError as e:
        raise RequestError(f"invalid host request: {e}") from e


def read_request(stream: TextIO) -> HostRequest:
    return parse_request(stream.read())


class FormValues:
    """Submitted form values keyed by field id, with typed accessors."""

    def __init__(self, values: Optional[Mapping[str, FieldValue]]):
        self._values: Dict[str, FieldValue] = dict(values or {})

    def __contains__(self, field_id: str) -> bool:
        return field_id in self._values

    def raw(self, field_id: str) -> FieldValue:
        try:
            return self._values[field_id]
        except KeyError:
            raise MissingFieldError(field_id) from None

    def text(self, field_id: str) -> str:
        v = self.raw(field_id)
        if isinstance(v, bool):
            return "true" if v else "false"
        return v

    def flag(self, field_id: str, default: Optional[bool] = None) -> bool:
        if default is not None and field_id not in self._values:
            return default
        return as_bool(self.raw(field_id))

    def member_ids(self, prefix: str) -> List[int]:
        """Ids of the checked toggles named ``<prefix><id>``, in submission order."""
        out: List[int] = []
        for key, value in self._values.items():
            if not key.startswith(prefix):
                continue
            suffix = key[len(prefix):]
            if suffix.isascii() and suffix.isdigit() and as_bool(value):
                out.append(int(suffix))
        return out


def encode_results(items: Iterable[ResultItem]) -> str:
    return json.dumps({"results": [i.to_dict() for i in items]}, ensure_ascii=False)


def write_results(stream: TextIO, items: Iterable[ResultItem]) -> None:
    stream.write(encode_results(items) + "\n")
    stream.flush()
