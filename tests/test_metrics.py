"""Test the metrics module."""

from unittest.mock import MagicMock, patch

import pytest
from prometheus_client import generate_latest

from core.metrics import (
    charged_cents_total,
    charges_total,
    init_metrics,
    record_charge,
    verifications_total,
)
from payments.exceptions import VerificationError


def test_record_charge_counts_and_sums():
    count = charges_total.labels(source="credit_card")
    cents = charged_cents_total.labels(source="credit_card")
    initial_count = count._value._value
    initial_cents = cents._value._value

    record_charge("credit_card", 1500)

    assert count._value._value == initial_count + 1
    assert cents._value._value == initial_cents + 1500


@pytest.mark.asyncio
async def test_transfer_is_counted(bridge, credit_card, verified_bank_account):
    metric = charges_total.labels(source="transfer")
    initial = metric._value._value

    await bridge.transfer(credit_card, verified_bank_account, 300)

    assert metric._value._value == initial + 1


@pytest.mark.asyncio
async def test_failed_verification_is_counted(bridge, processor, bank_account):
    metric = verifications_total.labels(kind="bank_account", outcome="failed")
    initial = metric._value._value
    processor.verify_bank_account.side_effect = VerificationError("mismatch")

    with pytest.raises(VerificationError):
        await bridge.verify_bank_account(bank_account, [1, 2])

    assert metric._value._value == initial + 1


def test_init_metrics_with_app():
    """Test metrics initialization with FastAPI app."""
    mock_app = MagicMock()

    with patch("core.metrics.Instrumentator") as mock_instrumentator:
        mock_inst = MagicMock()
        mock_instrumentator.return_value = mock_inst
        mock_inst.instrument.return_value = mock_inst
        mock_inst.expose.return_value = mock_inst

        result = init_metrics(mock_app)

        mock_instrumentator.assert_called_once()
        mock_inst.instrument.assert_called_with(mock_app)
        mock_inst.expose.assert_called_with(
            mock_app, endpoint="/metrics", include_in_schema=False
        )
        assert result == mock_inst


def test_metrics_endpoint_integration(client):
    """Test that metrics endpoint is available and returns Prometheus format."""
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "text/plain" in response.headers.get("content-type", "")
    assert "bridge_charges_total" in response.text


def test_metrics_naming_convention():
    # prometheus_client strips the _total suffix from counter names
    assert charges_total._name == "bridge_charges"
    assert charged_cents_total._name == "bridge_charged_cents"
    assert verifications_total._name == "bridge_verifications"


def test_metrics_export():
    record_charge("bank_account", 1)
    assert b"bridge_charged_cents_total" in generate_latest()
