"""Carga de `DocTypeInfo` desde JSON.

Formatos aceptados:
- Lista: [{"name": "Sales Invoice", "description": "..."}, ...]
- Objeto: {"infos": [...]}
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from core.domain.models import DocTypeInfo
from core.errors import DecodeFailure

_INFO_LIST = TypeAdapter(list[DocTypeInfo])


def load_doc_type_infos(path: Path) -> list[DocTypeInfo]:
    raw = path.read_text(encoding="utf-8")
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise DecodeFailure(f"{path}: invalid JSON") from exc

    if isinstance(data, dict):
        data = data.get("infos", [])
    try:
        return _INFO_LIST.validate_python(data)
    except ValidationError as exc:
        raise DecodeFailure(f"{path}: invalid DocTypeInfo list: {exc}") from exc
