"""Tests for specsync.naming."""

from __future__ import annotations

from specsync.models import Identity
from specsync.naming import (
    environment_asset_name,
    main_asset_name,
    sanitize_name,
    stage_environment_name,
)


def test_sanitize_collapses_whitespace_runs() -> None:
    assert sanitize_name("order \t service") == "order_service"
    assert sanitize_name("plain") == "plain"


def test_main_asset_name_default_domain() -> None:
    assert main_asset_name(None, "orders") == "[DEMO] orders #main"


def test_main_asset_name_upper_cases_domain() -> None:
    assert main_asset_name("payments", "refund service") == "[PAYMENTS] refund_service #main"


def test_environment_asset_name() -> None:
    assert environment_asset_name("demo", "orders", "prod-us") == "[demo] orders #prod-us"


def test_stage_environment_name_with_and_without_region() -> None:
    assert stage_environment_name("pay", "refunds", "dev") == "[pay] refunds #env-dev"
    assert (
        stage_environment_name("pay", "refunds", "prod", "us-east-1")
        == "[pay] refunds #env-us-east-1-prod"
    )


def test_identity_key_property() -> None:
    assert Identity(service="orders", stage="prod").key == "demo:orders:prod"
