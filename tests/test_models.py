"""Tests for record decoding and domain assembly."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from conftest import custom_field_row, field_row
from core.domain.models import (
    DocCustomFieldRaw,
    DocFieldRaw,
    DocTypeInfo,
    DocTypeRaw,
    SiteToken,
    serial_names,
)


def test_serial_names_use_aliases():
    assert "dt" in serial_names(DocCustomFieldRaw)
    assert "parent" not in serial_names(DocCustomFieldRaw)
    assert serial_names(DocTypeRaw)[:2] == ["name", "module"]


def test_custom_field_parent_comes_from_dt():
    raw = DocCustomFieldRaw.model_validate(custom_field_row("User-nickname", "User"))

    assert raw.parent == "User"
    assert raw.to_field().is_custom is True


def test_check_fields_accept_frappe_ints():
    raw = DocTypeRaw.model_validate({"name": "ToDo", "module": "Desk", "istable": 1, "custom": 0})

    assert raw.istable is True
    assert raw.custom is False


def test_unknown_keys_are_ignored_and_required_keys_enforced():
    DocFieldRaw.model_validate({**field_row("Email", "User"), "owner": "Administrator"})

    with pytest.raises(ValidationError):
        DocFieldRaw.model_validate({"name": "Email", "parent": "User"})


def test_records_are_immutable_and_hashable():
    a = DocFieldRaw.model_validate(field_row("Email", "User"))
    b = DocFieldRaw.model_validate(field_row("Email", "User"))

    assert len({a, b}) == 1
    with pytest.raises(ValidationError):
        a.idx = 3


def test_to_doc_type_orders_fields_and_attaches_info():
    fields = [
        DocFieldRaw.model_validate(field_row("B", "User", idx=2)),
        DocCustomFieldRaw.model_validate(custom_field_row("A", "User", idx=2)),
        DocFieldRaw.model_validate(field_row("C", "User", idx=1)),
    ]
    info = DocTypeInfo(name="User")

    doc_type = DocTypeRaw(name="User", module="Core").to_doc_type(fields=fields, info=info)

    assert [f.name for f in doc_type.fields] == ["C", "A", "B"]
    assert doc_type.info is info


def test_site_token_expiry():
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    token = SiteToken(token="sid", expires_at=now + timedelta(hours=1))

    assert not token.is_expired(now)
    assert token.is_expired(now + timedelta(hours=1))
