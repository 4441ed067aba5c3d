"""Per-core fiber loss calculation."""

import logging

from otsloss.errors import PowerParseError
from otsloss.models import Connection, FiberCore, LossRecord, ReconciledPower, parse_decimal

logger = logging.getLogger(__name__)

# LD type whose ingress power comes from the Raman card's line-in PM
# instead of the core's own reported value.
AMPLIFIER_LD_TYPE = "RA2P"


def uses_amplifier_power(ld_type: str) -> bool:
    return ld_type == AMPLIFIER_LD_TYPE


def compute_total_loss(egress_power: float, ingress_power: float, raman_gain: float | None) -> float:
    """Fiber loss in dB: egress minus ingress, plus Raman gain when present.

    Examples:
        >>> compute_total_loss(-5.0, -25.0, None)
        20.0
        >>> compute_total_loss(-5.0, -25.0, 15.0)
        35.0
    """
    loss = egress_power - ingress_power
    if raman_gain is not None:
        loss += raman_gain
    return loss


def calculate_core_loss(
    connection: Connection,
    ld_type: str,
    core: FiberCore,
    reconciled: ReconciledPower | None,
) -> LossRecord | None:
    """Build the loss record for one core.

    Args:
        connection: Connection the core belongs to
        ld_type: LD type token used for selection
        core: Fiber core with its reported powers
        reconciled: PM power for the connection, None if unavailable

    Returns:
        LossRecord, or None when the connection has no usable PM power

    Raises:
        PowerParseError: Egress, ingress or Raman gain is missing or not numeric
    """
    if reconciled is None:
        return None

    context = f"{connection.label} {core.from_label}->{core.to_label}"

    if uses_amplifier_power(ld_type):
        port_power = reconciled.get(core.to_label)
        if port_power is None:
            raise PowerParseError("ingress power", None, f"{context}: no PM power for {core.to_label}")
        ingress_power = port_power.value
    else:
        ingress_power = parse_decimal(core.ingress_power, "ingress power", context)

    egress_power = parse_decimal(core.egress_power, "egress power", context)

    # The sentinel is compared before any parse attempt
    raman_gain = None
    if core.has_raman_gain:
        raman_gain = parse_decimal(core.raman_gain, "Raman gain", context)

    total_loss = compute_total_loss(egress_power, ingress_power, raman_gain)
    logger.debug("Core loss: %s total_loss=%s", context, total_loss)

    return LossRecord(
        connection_label=connection.label,
        egress_port=core.from_label,
        egress_power=egress_power,
        ingress_port=core.to_label,
        ingress_power=ingress_power,
        raman_gain=raman_gain,
        total_loss=total_loss,
    )
