import json
import logging
from uuid import uuid4

from pythonjsonlogger.json import JsonFormatter

from fee_registry.core.logging import FeeRegistryJsonFormatter, build_logging_config


def test_json_formatter_stamps_scope_fields() -> None:
    organization_id = uuid4()
    record = logging.LogRecord(
        name="fee_registry.api.v1.fee_types.router",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Fee type %s removed",
        args=("abc",),
        exc_info=None,
    )
    record.organization_id = organization_id

    payload = json.loads(FeeRegistryJsonFormatter("%(message)s").format(record))

    assert payload["message"] == "Fee type abc removed"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "fee_registry.api.v1.fee_types.router"
    assert payload["organization_id"] == str(organization_id)
    assert "fee_type_id" not in payload


def test_json_formatter_is_wired_into_logging_config() -> None:
    assert issubclass(FeeRegistryJsonFormatter, JsonFormatter)
    config = build_logging_config()
    assert config["formatters"]["json"]["()"] is FeeRegistryJsonFormatter
