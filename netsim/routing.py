from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from . import addressing
from .config import (
    INITIAL_TTL_HOST,
    INITIAL_TTL_ROUTER,
    PER_HOP_RTT_MS,
    PING_BYTES,
    PING_COUNT,
    REPLY_RTT_MS,
    EngineConfig,
)
from .reachability import exists_physical_path
from .topology import Device, Interface, Topology


class Failure(str, Enum):
    DEVICE_NOT_FOUND = "device_not_found"
    SELF_PING = "self_ping"
    NO_PHYSICAL_PATH = "no_physical_path"
    MISSING_SOURCE_ADDRESS = "missing_source_address"
    MISSING_TARGET_ADDRESS = "missing_target_address"
    GATEWAY_UNREACHABLE = "gateway_unreachable"
    NETWORK_UNREACHABLE = "network_unreachable"


FAILURE_MESSAGES = {
    Failure.DEVICE_NOT_FOUND: "Device not found",
    Failure.SELF_PING: "Error: a device cannot ping itself",
    Failure.NO_PHYSICAL_PATH: "Error: no physical connection (cable) between the devices",
    Failure.MISSING_SOURCE_ADDRESS: "Error: source has no IP configuration",
    Failure.MISSING_TARGET_ADDRESS: "Error: destination has no IP configuration",
    Failure.GATEWAY_UNREACHABLE: "Error: default gateway unreachable",
    Failure.NETWORK_UNREACHABLE: "Destination network unreachable",
}


@dataclass
class PingResult:
    success: bool
    message: str
    failure: Optional[Failure] = None
    scenario: Optional[str] = None  # direct|gateway|routed
    hops: int = 0  # routers crossed
    route: Optional[List[int]] = None
    reply_from: str = ""


@dataclass
class RouteEntry:
    code: str  # C|S*
    network: str
    prefix: int
    interface: str
    next_hop: Optional[str] = None

    @property
    def cidr(self) -> str:
        return f"{self.network}/{self.prefix}"


@dataclass
class _Resolution:
    failure: Optional[Failure] = None
    path: List[int] = field(default_factory=list)
    scenario: str = ""


class RoutingEngine:
    """IP-level reachability over a Topology.

    Reasoning is purely static: cabling plus interface addressing. There are
    no routing tables to consult; a router forwards towards any subnet it can
    reach through a chain of correctly addressed router-to-router links.
    """

    def __init__(self, topology: Topology, config: Optional[EngineConfig] = None):
        self.topology = topology
        self.config = config or EngineConfig()

    # ───────────────────────────── Public queries ─────────────────────────────

    def test_connectivity(self, source_id, target_id) -> PingResult:
        res = self._resolve(source_id, target_id)
        if res.failure is not None:
            return PingResult(success=False, message=FAILURE_MESSAGES[res.failure], failure=res.failure)

        target = self.topology.devices[target_id]
        hops = sum(1 for dev_id in res.path[1:-1] if self.topology.devices[dev_id].is_router)
        reply_from = self._reply_address(target)
        return PingResult(
            success=True,
            message=self._reply_message(target, reply_from, res.scenario, hops),
            scenario=res.scenario,
            hops=hops,
            route=list(res.path),
            reply_from=reply_from,
        )

    def compute_route(self, source_id, target_id) -> Optional[List[int]]:
        """Device ids the reply travels through: source, routers, target. None if unreachable."""
        res = self._resolve(source_id, target_id)
        if res.failure is not None:
            return None
        return list(res.path)

    def check_routing_path(self, source: Device, target: Device) -> _Resolution:
        target_addrs = [i.address for i in target.addressed_interfaces()]

        # Direct match, from the source's side of each subnet.
        if self._matches_any(source.addressed_interfaces(), target_addrs):
            return _Resolution(path=[source.id, target.id], scenario="direct")

        prefix: List[int] = []
        if source.is_router:
            start = source
        else:
            if not source.gateway:
                return _Resolution(failure=Failure.NETWORK_UNREACHABLE)
            if not (source.address and source.mask) or not addressing.same_subnet(
                source.address, source.gateway, source.mask
            ):
                return _Resolution(failure=Failure.GATEWAY_UNREACHABLE)
            start = self.topology.router_owning(source.gateway)
            if start is None:
                return _Resolution(failure=Failure.GATEWAY_UNREACHABLE)
            prefix = [source.id]

        chain = self._router_bfs(start, target_addrs)
        if chain is None:
            return _Resolution(failure=Failure.NETWORK_UNREACHABLE)

        path = prefix + chain
        if path[-1] != target.id:
            path.append(target.id)
        scenario = "gateway" if not source.is_router and len(chain) == 1 else "routed"
        return _Resolution(path=path, scenario=scenario)

    def routing_table(self, device_id) -> List[RouteEntry]:
        """Connected networks (plus a host's default route). Display only."""
        dev = self.topology.require(device_id)
        entries: List[RouteEntry] = []
        for itf in dev.addressed_interfaces():
            if self.config.routing_table_requires_up and not itf.is_up():
                continue
            entries.append(
                RouteEntry(
                    code="C",
                    network=addressing.network_address(itf.address, itf.mask),
                    prefix=addressing.prefix_length(itf.mask),
                    interface=itf.name,
                )
            )
        if not dev.is_router and dev.gateway and dev.interfaces:
            entries.append(
                RouteEntry(code="S*", network="0.0.0.0", prefix=0, interface=dev.interfaces[0].name, next_hop=dev.gateway)
            )
        return entries

    # ───────────────────────────── Decision procedure ─────────────────────────────

    def _resolve(self, source_id, target_id) -> _Resolution:
        source = self.topology.get(source_id)
        target = self.topology.get(target_id)
        if source is None or target is None:
            return _Resolution(failure=Failure.DEVICE_NOT_FOUND)
        if source.id == target.id:
            return _Resolution(failure=Failure.SELF_PING)

        graph = self.topology.adjacency(up_only=self.config.require_link_up)
        if not exists_physical_path(graph, source.id, target.id):
            return _Resolution(failure=Failure.NO_PHYSICAL_PATH)

        if not source.is_router and not source.address:
            return _Resolution(failure=Failure.MISSING_SOURCE_ADDRESS)
        if not target.is_router and not target.address:
            return _Resolution(failure=Failure.MISSING_TARGET_ADDRESS)

        return self.check_routing_path(source, target)

    def _router_bfs(self, start: Device, target_addrs: List[str]) -> Optional[List[int]]:
        """Router chain from `start` to the first router with a leg in the target's subnet."""
        prev: Dict[int, Optional[int]] = {start.id: None}
        q = deque([start])
        while q:
            cur = q.popleft()
            if self._matches_any(cur.addressed_interfaces(), target_addrs):
                chain = []
                n: Optional[int] = cur.id
                while n is not None:
                    chain.append(n)
                    n = prev[n]
                chain.reverse()
                return chain

            for nb in self._l3_neighbours(cur):
                if nb.id not in prev:
                    prev[nb.id] = cur.id
                    q.append(nb)
        return None

    def _l3_neighbours(self, router: Device) -> List[Device]:
        """Routers one valid L3 hop away.

        A cable only counts when both ends are addressed and share a subnet
        (measured with this router's mask).
        """
        out: List[Device] = []
        seen = set()
        for itf in router.interfaces:
            found = self.topology.peer_interface(itf)
            if found is None:
                continue
            nb, nitf = found
            if not nb.is_router or nb.id in seen:
                continue
            if self._valid_hop(itf, nitf):
                seen.add(nb.id)
                out.append(nb)
        return out

    def _valid_hop(self, itf: Interface, nitf: Interface) -> bool:
        if not (itf.has_address() and nitf.address):
            return False
        if self.config.require_link_up and not (itf.is_up() and nitf.is_up()):
            return False
        return addressing.same_subnet(itf.address, nitf.address, itf.mask)

    @staticmethod
    def _matches_any(interfaces: List[Interface], target_addrs: List[str]) -> bool:
        for itf in interfaces:
            if not itf.mask:
                continue
            for addr in target_addrs:
                if addressing.same_subnet(itf.address, addr, itf.mask):
                    return True
        return False

    # ───────────────────────────── Reply text ─────────────────────────────

    @staticmethod
    def _reply_address(target: Device) -> str:
        addressed = target.addressed_interfaces()
        return addressed[0].address if addressed else target.name

    @staticmethod
    def _reply_message(target: Device, reply_from: str, scenario: str, hops: int) -> str:
        rtt = REPLY_RTT_MS.get(scenario, REPLY_RTT_MS["routed"]) + PER_HOP_RTT_MS * max(0, hops - 1)
        ttl = (INITIAL_TTL_ROUTER if target.is_router else INITIAL_TTL_HOST) - hops
        lines = [
            f"Reply from {reply_from}: bytes={PING_BYTES} time={rtt}ms TTL={ttl}",
            "",
            f"Ping statistics for {reply_from}:",
            f"    Packets: Sent = {PING_COUNT}, Received = {PING_COUNT}, Lost = 0 (0% loss)",
        ]
        return "\n".join(lines)
