from __future__ import annotations

from dataclasses import dataclass


# ─────────────────────────────────────────────────────────────────────────────
# Link negotiation
# ─────────────────────────────────────────────────────────────────────────────

# A freshly cabled link stays "down" this long before both ends come up.
SETTLE_DELAY_MS = 2000

# ─────────────────────────────────────────────────────────────────────────────
# Provisioning
# ─────────────────────────────────────────────────────────────────────────────

SWITCH_PORT_COUNT = 24

ROUTER_INTERFACES = (
    ("FastEthernet0/0", "ethernet"),
    ("FastEthernet0/1", "ethernet"),
    ("Serial0/0/0", "serial"),
    ("Serial0/0/1", "serial"),
)

HOST_INTERFACE = ("FastEthernet0", "ethernet")

# ─────────────────────────────────────────────────────────────────────────────
# Logs
# ─────────────────────────────────────────────────────────────────────────────

MAX_SESSION_EVENTS = 5000
MAX_PING_LOG = 200

# ─────────────────────────────────────────────────────────────────────────────
# Ping replies (display only)
# ─────────────────────────────────────────────────────────────────────────────

# Base round-trip time per scenario, in ms.
REPLY_RTT_MS = {
    "direct": 1,
    "gateway": 5,
    "routed": 8,
}
# Each router past the first adds this much.
PER_HOP_RTT_MS = 3

# TTL the replying device starts with; every router crossed takes one off.
INITIAL_TTL_ROUTER = 255
INITIAL_TTL_HOST = 128

PING_COUNT = 4
PING_BYTES = 32


@dataclass
class EngineConfig:
    settle_delay_ms: int = SETTLE_DELAY_MS
    switch_port_count: int = SWITCH_PORT_COUNT

    # When True, a link that is still negotiating is not usable: it does not
    # count as a cable and is not a valid L3 hop.
    require_link_up: bool = False

    # Routing table only lists connected networks whose link is up.
    routing_table_requires_up: bool = True

    max_session_events: int = MAX_SESSION_EVENTS
    max_ping_log: int = MAX_PING_LOG
