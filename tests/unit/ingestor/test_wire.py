"""
日志记录解析单元测试
"""

import pytest

from shipit_core.common.exceptions import IngestionParseFailure
from shipit_ingestor.loops.wire import parse_wire_record


@pytest.mark.parametrize(
    "payload",
    [
        '{"project_id": "p1", "deployment_id": "d1", "log": "npm install"}',
        b'{"deployment_id": "d1", "log": "npm install"}',
        {"deployment_id": "d1", "log": "npm install"},
    ],
)
def test_valid_payload_forms(payload):
    record = parse_wire_record(payload)

    assert record.deployment_id == "d1"
    assert record.log == "npm install"


@pytest.mark.parametrize(
    "payload",
    [
        '{"log": "b"}',
        '{"deployment_id": "d1"}',
        '{"deployment_id": "", "log": "x"}',
        '{"deployment_id": "d1", "log": ""}',
        '{"deployment_id": 7, "log": "x"}',
        "[1, 2]",
        "not json",
    ],
)
def test_malformed_payloads(payload):
    with pytest.raises(IngestionParseFailure) as exc_info:
        parse_wire_record(payload, msg_id="9-0")
    assert exc_info.value.msg_id == "9-0"
