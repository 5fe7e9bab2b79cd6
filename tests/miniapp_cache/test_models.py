"""Tests for descriptor models: alias handling, ignored keys, and round-trips."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from MiniAppCache.models import (
    ApiEnvelope,
    ApplicationDescriptor,
    MetaValue,
    MetaValueType,
)
from tests.conftest import APP_ID, descriptor_payload


class TestApplicationDescriptor:
    def test_parses_server_payload(self):
        descriptor = ApplicationDescriptor.model_validate(descriptor_payload())

        assert descriptor.app_id == APP_ID
        assert descriptor.version == 1
        assert descriptor.use_app_store is False
        assert descriptor.entry.agent == "RN"
        assert [s.src for s in descriptor.entry.script] == [
            "http://10.20.0.18:3000/vendor_runtime_base.bundle.js",
            "http://10.20.0.18:3000/main.bundle.js",
        ]
        assert descriptor.entry.script[1].async_ is True

    def test_unknown_keys_are_not_serialised(self):
        descriptor = ApplicationDescriptor.model_validate(descriptor_payload())
        data = json.loads(descriptor.to_json())

        assert "name" not in data
        assert "addTime" not in data["entry"]
        assert "moduleId" not in data["entry"]["script"][0]
        assert data["entry"]["script"][1]["async"] is True
        assert data["metaInfo"]["theme"]["valueType"] == "1"

    def test_blob_round_trip_is_lossless(self):
        descriptor = ApplicationDescriptor.model_validate(descriptor_payload(version=7))

        assert ApplicationDescriptor.from_blob(descriptor.to_blob()) == descriptor

    def test_descriptor_is_immutable(self):
        descriptor = ApplicationDescriptor.model_validate(descriptor_payload())

        with pytest.raises(ValidationError):
            descriptor.version = 2

    def test_missing_entry_is_rejected(self):
        payload = descriptor_payload()
        del payload["entry"]

        with pytest.raises(ValidationError):
            ApplicationDescriptor.model_validate(payload)


class TestMetaValue:
    @pytest.mark.parametrize(
        "content, value_type, expected",
        [
            ("42", "0", 42),
            ("2.5", "0", 2.5),
            ("hello", "1", "hello"),
            ("true", "2", True),
            ("0", "2", False),
        ],
    )
    def test_typed_value(self, content, value_type, expected):
        value = MetaValue.model_validate(
            {"content": content, "valueType": value_type, "description": ""}
        )
        assert value.typed_value() == expected

    def test_unknown_value_type_is_rejected(self):
        with pytest.raises(ValidationError):
            MetaValue.model_validate({"content": "x", "valueType": "9"})

    def test_accepts_field_names(self):
        value = MetaValue(content="1", value_type=MetaValueType.BOOL)
        assert value.typed_value() is True


class TestApiEnvelope:
    def test_failure_envelope_without_data(self):
        envelope = ApiEnvelope[ApplicationDescriptor].model_validate_json('{"code": 404}')

        assert envelope.ok is False
        assert envelope.data is None

    def test_success_envelope(self):
        body = json.dumps({"code": 0, "msg": "success", "data": descriptor_payload()})
        envelope = ApiEnvelope[ApplicationDescriptor].model_validate_json(body)

        assert envelope.ok
        assert envelope.data.app_id == APP_ID
