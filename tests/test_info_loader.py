"""Tests for reading DocTypeInfo enrichment files."""

from __future__ import annotations

import json

import pytest

from adapters.info_loader import load_doc_type_infos
from core.errors import DecodeFailure


def test_loads_list(tmp_path):
    path = tmp_path / "infos.json"
    path.write_text(json.dumps([{"name": "User", "tags": ["core"]}, {"name": "Role"}]), encoding="utf-8")

    infos = load_doc_type_infos(path)

    assert [i.name for i in infos] == ["User", "Role"]
    assert infos[0].tags == ("core",)


def test_loads_wrapped_object(tmp_path):
    path = tmp_path / "infos.json"
    path.write_text(json.dumps({"infos": [{"name": "User", "description": "x"}]}), encoding="utf-8")

    assert load_doc_type_infos(path)[0].description == "x"


@pytest.mark.parametrize("content", ["{not json", json.dumps([{"description": "no name"}])])
def test_invalid_files(tmp_path, content):
    path = tmp_path / "infos.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(DecodeFailure):
        load_doc_type_infos(path)
