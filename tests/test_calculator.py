"""Unit tests for the loss calculator."""

from datetime import datetime

import pytest

from otsloss.calculator import calculate_core_loss, compute_total_loss, uses_amplifier_power
from otsloss.errors import PowerParseError
from otsloss.models import Connection, FiberCore, PortPower, ReconciledPower

TS = datetime(2024, 1, 2, 10, 15)


@pytest.fixture
def connection():
    return Connection(
        id="1",
        label="OTS-A",
        a_port="1/2/RA2P-LINE",
        z_port="2/2/RA2P-LINE",
        a2_port="1/2/RA2P-OSC",
        z2_port="2/2/RA2P-OSC",
        connection_type="WdmPortType_ots",
    )


@pytest.fixture
def reconciled():
    return ReconciledPower(
        ports={
            "2/2/RA2P-OSC": PortPower(-25.0, TS),
            "2/2/RA2P-LINE": PortPower(-18.5, TS),
        }
    )


class TestComputeTotalLoss:
    """Test the loss formula."""

    def test_without_raman_gain(self):
        assert compute_total_loss(-5.0, -25.0, None) == 20.0

    def test_with_raman_gain(self):
        assert compute_total_loss(-5.0, -25.0, 15.0) == 35.0

    def test_no_rounding(self):
        """Test full double precision is kept."""
        assert compute_total_loss(0.1, 0.0, 0.2) == 0.1 + 0.2


class TestIngressPolicy:
    """Test which ingress power source is used."""

    def test_amplifier_ld_type(self):
        assert uses_amplifier_power("RA2P")

    def test_other_ld_types(self):
        assert not uses_amplifier_power("LD4P")
        assert not uses_amplifier_power("RA2")
        assert not uses_amplifier_power("ra2p")

    def test_amplifier_policy_ignores_reported_ingress(self, connection, reconciled):
        """Test RA2P takes ingress from PM keyed by the core's destination port."""
        core = FiberCore("1/2/RA2P-OSC", "2/2/RA2P-OSC", "-5.0", "-99.0", "N.A.")

        record = calculate_core_loss(connection, "RA2P", core, reconciled)

        assert record.ingress_power == -25.0
        assert record.total_loss == 20.0

    def test_amplifier_policy_with_gain(self, connection, reconciled):
        core = FiberCore("1/2/RA2P-OSC", "2/2/RA2P-OSC", "-5.0", "-99.0", "15.0")

        record = calculate_core_loss(connection, "RA2P", core, reconciled)

        assert record.raman_gain == 15.0
        assert record.total_loss == 35.0

    def test_other_policy_uses_reported_ingress(self, connection, reconciled):
        """Test non-RA2P types use the core's own ingress power."""
        core = FiberCore("1/2/RA2P-OSC", "2/2/RA2P-OSC", "-5.0", "-25.0", "N.A.")

        record = calculate_core_loss(connection, "LD4P", core, reconciled)

        assert record.ingress_power == -25.0
        assert record.total_loss == 20.0

    def test_amplifier_policy_missing_port_power(self, connection, reconciled):
        """Test a destination port without PM power is a parse failure."""
        core = FiberCore("1/2/RA2P-OSC", "9/9/UNKNOWN", "-5.0", "-25.0", "N.A.")

        with pytest.raises(PowerParseError, match="9/9/UNKNOWN"):
            calculate_core_loss(connection, "RA2P", core, reconciled)


class TestCalculateCoreLoss:
    """Test record construction and failure semantics."""

    def test_record_fields(self, connection, reconciled):
        core = FiberCore("1/2/RA2P-LINE", "2/2/RA2P-LINE", "3.5", "-1.0", "10.0")

        record = calculate_core_loss(connection, "RA2P", core, reconciled)

        assert record.connection_label == "OTS-A"
        assert record.egress_port == "1/2/RA2P-LINE"
        assert record.ingress_port == "2/2/RA2P-LINE"
        assert record.egress_power == 3.5
        assert record.ingress_power == -18.5
        assert record.total_loss == 3.5 + 18.5 + 10.0

    def test_no_record_without_reconciled_power(self, connection):
        core = FiberCore("1/2/RA2P-OSC", "2/2/RA2P-OSC", "-5.0", "-25.0", "N.A.")
        assert calculate_core_loss(connection, "RA2P", core, None) is None

    def test_bad_egress_power_raises(self, connection, reconciled):
        core = FiberCore("1/2/RA2P-OSC", "2/2/RA2P-OSC", "n/a", "-25.0", "N.A.")

        with pytest.raises(PowerParseError) as excinfo:
            calculate_core_loss(connection, "RA2P", core, reconciled)

        assert excinfo.value.field == "egress power"

    def test_missing_egress_power_raises(self, connection, reconciled):
        core = FiberCore("1/2/RA2P-OSC", "2/2/RA2P-OSC", None, "-25.0", "N.A.")

        with pytest.raises(PowerParseError):
            calculate_core_loss(connection, "RA2P", core, reconciled)

    def test_bad_reported_ingress_raises(self, connection, reconciled):
        core = FiberCore("1/2/RA2P-OSC", "2/2/RA2P-OSC", "-5.0", "", "N.A.")

        with pytest.raises(PowerParseError) as excinfo:
            calculate_core_loss(connection, "LD4P", core, reconciled)

        assert excinfo.value.field == "ingress power"

    def test_bad_raman_gain_raises(self, connection, reconciled):
        core = FiberCore("1/2/RA2P-OSC", "2/2/RA2P-OSC", "-5.0", "-25.0", "high")

        with pytest.raises(PowerParseError) as excinfo:
            calculate_core_loss(connection, "RA2P", core, reconciled)

        assert excinfo.value.field == "Raman gain"

    def test_missing_raman_gain_raises(self, connection, reconciled):
        """Test an absent gain is not mistaken for the sentinel."""
        core = FiberCore("1/2/RA2P-OSC", "2/2/RA2P-OSC", "-5.0", "-25.0", None)

        with pytest.raises(PowerParseError):
            calculate_core_loss(connection, "RA2P", core, reconciled)
