"""Unit tests for connection selection and characteristics resolution."""

import pytest

from otsloss.errors import TransportError
from otsloss.fake_client import FakeTelemetryClient
from otsloss.models import Connection, FiberCore
from otsloss.selector import (
    far_side_ports,
    index_pm_object_ids,
    matches_ld_type,
    resolve_fiber_characteristics,
    select_connections,
)


def make_connection(conn_id="1", label="OTS-1", ports=("", "", "", ""), conn_type="WdmPortType_ots"):
    a_port, z_port, a2_port, z2_port = ports
    return Connection(
        id=conn_id,
        label=label,
        a_port=a_port,
        z_port=z_port,
        a2_port=a2_port,
        z2_port=z2_port,
        connection_type=conn_type,
    )


class TestMatchesLdType:
    """Test the per-connection selection rule."""

    def test_substring_match(self):
        connection = make_connection(ports=("RA2P-line-3", "", "", ""))
        assert matches_ld_type(connection, "RA2P")

    def test_similar_token_does_not_match(self):
        connection = make_connection(ports=("RA4P-line-3", "", "", ""))
        assert not matches_ld_type(connection, "RA2P")

    def test_case_sensitive(self):
        connection = make_connection(ports=("ra2p-line-3", "", "", ""))
        assert not matches_ld_type(connection, "RA2P")

    @pytest.mark.parametrize("position", range(4))
    def test_any_of_four_ports(self, position):
        """Test each of the four port labels is considered."""
        ports = ["1/1/LD4P", "2/1/LD4P", "1/2/LD4P", "2/2/LD4P"]
        ports[position] = "1/3/RA2P-LINE"
        assert matches_ld_type(make_connection(ports=tuple(ports)), "RA2P")

    def test_non_ots_excluded_regardless_of_ports(self):
        connection = make_connection(
            ports=("RA2P", "RA2P", "RA2P", "RA2P"), conn_type="WdmPortType_och"
        )
        assert not matches_ld_type(connection, "RA2P")


class TestSelectConnections:
    """Test inventory filtering."""

    def test_keeps_inventory_order(self):
        inventory = [
            make_connection("1", "OTS-1", ("1/2/RA2P", "", "", "")),
            make_connection("2", "OTS-2", ("1/2/LD4P", "", "", "")),
            make_connection("3", "OTS-3", ("", "", "", "2/2/RA2P")),
            make_connection("4", "OTS-4", ("1/2/RA2P", "", "", ""), conn_type="WdmPortType_och"),
        ]

        selected = select_connections(inventory, "RA2P")

        assert [c.label for c in selected] == ["OTS-1", "OTS-3"]

    def test_zero_matches_is_empty(self):
        inventory = [make_connection(ports=("1/2/LD4P", "", "", ""))]
        assert select_connections(inventory, "RA2P") == []

    def test_empty_inventory(self):
        assert select_connections([], "RA2P") == []


class TestResolveFiberCharacteristics:
    """Test characteristics fetch through the client."""

    def test_returns_cores_in_platform_order(self):
        cores = [
            FiberCore("b", "a", "1.0", "-20.0", "N.A."),
            FiberCore("a", "b", "2.0", "-21.0", "N.A."),
        ]
        client = FakeTelemetryClient(characteristics={"1": cores})

        assert resolve_fiber_characteristics(client, make_connection("1")) == cores

    def test_transport_errors_propagate(self):
        client = FakeTelemetryClient()

        with pytest.raises(TransportError):
            resolve_fiber_characteristics(client, make_connection("missing"))


class TestPmObjectIds:
    """Test PM object id lookup helpers."""

    def test_index_by_label(self):
        index = index_pm_object_ids([("OTS-1", "pm-1"), ("OTS-2", "pm-2")])
        assert index == {"OTS-1": "pm-1", "OTS-2": "pm-2"}

    def test_later_duplicate_wins(self):
        index = index_pm_object_ids([("OTS-1", "pm-old"), ("OTS-1", "pm-new")])
        assert index["OTS-1"] == "pm-new"

    def test_far_side_ports_secondary_first(self):
        connection = make_connection(ports=("a", "z", "a2", "z2"))
        assert far_side_ports(connection) == ["z2", "z"]
