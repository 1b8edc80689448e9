from __future__ import annotations

from typing import Any, Dict, List, Optional

from . import addressing
from .config import EngineConfig
from .errors import AddressError, ConfigError
from .links import LinkNegotiator, Scheduler
from .project import (
    TextLabelRecord,
    build_topology,
    export_project,
    load_json,
    load_text_labels,
    parse_project,
    save_json,
)
from .reachability import physical_path
from .routing import PingResult, RouteEntry, RoutingEngine
from .session_log import PingLog, PingLogEntry, SessionLogger
from .topology import Device, Interface, Link, LinkEnd, LinkState, Topology


class NetworkSim:
    """One editing session: the topology plus everything that reasons about it.

    This is what the editor talks to. Every mutation runs to completion before
    the next query, and all timers go through the scheduler handed in here.
    """

    def __init__(self, config: Optional[EngineConfig] = None, scheduler: Optional[Scheduler] = None):
        self.config = config or EngineConfig()
        self.topology = Topology(switch_port_count=self.config.switch_port_count)
        self.negotiator = LinkNegotiator(self.topology, scheduler, self.config.settle_delay_ms)
        self.engine = RoutingEngine(self.topology, self.config)

        self.session = SessionLogger(max_events=self.config.max_session_events)
        self.ping_log = PingLog(max_entries=self.config.max_ping_log)

        self.text_labels: List[TextLabelRecord] = []
        self._next_text_id = 1

        self.negotiator.subscribe(self._on_link_state)

    @property
    def scheduler(self) -> Scheduler:
        return self.negotiator.scheduler

    @property
    def devices(self) -> List[Device]:
        return list(self.topology)

    def get_device(self, device_id) -> Optional[Device]:
        return self.topology.get(device_id)

    def find_device(self, ref) -> Optional[Device]:
        """Look a device up by id, or by name (case-insensitive) when `ref` is text."""
        if isinstance(ref, int):
            return self.topology.get(ref)
        s = str(ref).strip()
        if s.isdigit() and int(s) in self.topology.devices:
            return self.topology.get(int(s))
        for dev in self.topology:
            if dev.name.lower() == s.lower():
                return dev
        return None

    # ───────────────────────────── Devices / Links ─────────────────────────────

    def create_device(self, kind, x: float = 0.0, y: float = 0.0, name: Optional[str] = None, label: Optional[str] = None) -> Device:
        dev = self.topology.create_device(kind, x, y, name=name, label=label)
        self.session.add("device_created", id=dev.id, device_kind=dev.kind.value, name=dev.name)
        return dev

    def remove_device(self, device_id) -> bool:
        dev = self.topology.get(device_id)
        if dev is None:
            return False
        for link in self.topology.links_of(dev.id):
            self.disconnect(link.a.device_id, link.a.interface, link.b.device_id, link.b.interface)
        self.topology.remove_device(dev.id)
        self.session.add("device_removed", id=dev.id, name=dev.name)
        return True

    def connect(self, a_id, a_if: str, b_id, b_if: str) -> bool:
        if not self.topology.connect(a_id, a_if, b_id, b_if):
            return False
        link = Link(a=LinkEnd(a_id, a_if), b=LinkEnd(b_id, b_if))
        self.session.add("link_added", a=[a_id, a_if], b=[b_id, b_if])

        ia = self.topology.devices[a_id].get_interface(a_if)
        ib = self.topology.devices[b_id].get_interface(b_if)
        if ia.media != ib.media:
            self.session.add("media_mismatch", a=[a_id, a_if, ia.media.value], b=[b_id, b_if, ib.media.value])

        self.negotiator.start(link)
        return True

    def disconnect(self, a_id, a_if: str, b_id, b_if: str) -> bool:
        link = Link(a=LinkEnd(a_id, a_if), b=LinkEnd(b_id, b_if))
        self.negotiator.cancel(link)
        if not self.topology.disconnect(a_id, a_if, b_id, b_if):
            return False
        self.session.add("link_removed", a=[a_id, a_if], b=[b_id, b_if])
        return True

    def disconnect_interface(self, device_id, if_name: str) -> bool:
        _dev, itf = self.topology.require_interface(device_id, if_name)
        if itf.peer is None:
            return False
        return self.disconnect(device_id, if_name, itf.peer.device_id, itf.peer.interface)

    def media_mismatches(self) -> List[Link]:
        return self.topology.media_mismatches()

    def clear(self) -> None:
        self.negotiator.cancel_all()
        self.topology.clear()
        self.text_labels = []
        self._next_text_id = 1
        self.session.add("topology_cleared")

    # ───────────────────────────── Configuration ─────────────────────────────

    def configure_interface(self, device_id, if_name: str, address: str, mask: str) -> Interface:
        itf = self.topology.configure_interface(device_id, if_name, address, mask)
        self.session.add("interface_configured", id=device_id, interface=if_name, address=itf.address, mask=itf.mask)
        return itf

    def configure_host(self, device_id, address: str, mask: str, gateway: Optional[str] = None) -> Device:
        """Endpoint shortcut: address its only interface and optionally set the gateway."""
        dev = self.topology.require(device_id)
        if dev.is_router or dev.is_switch:
            raise ConfigError(f"{dev.name} is a {dev.kind.value}; configure its interfaces instead")
        # Nothing is applied until the gateway is known to be good.
        if gateway and not addressing.is_valid_address(gateway.strip()):
            raise AddressError(f"Invalid gateway address: {gateway!r}")
        self.configure_interface(dev.id, dev.interfaces[0].name, address, mask)
        if gateway is not None:
            self.set_gateway(dev.id, gateway)
        return dev

    def set_gateway(self, device_id, gateway: str) -> None:
        self.topology.set_gateway(device_id, gateway)
        self.session.add("gateway_configured", id=device_id, gateway=gateway)

    def rename_device(self, device_id, name: str) -> None:
        self.topology.rename(device_id, name)

    # ───────────────────────────── Queries ─────────────────────────────

    def test_connectivity(self, source_id, target_id) -> PingResult:
        return self.engine.test_connectivity(source_id, target_id)

    def compute_route(self, source_id, target_id) -> Optional[List[int]]:
        return self.engine.compute_route(source_id, target_id)

    def physical_trace(self, source_id, target_id) -> Optional[List[int]]:
        """Cable-by-cable path for animating a packet; ignores addressing and link state."""
        if self.topology.get(source_id) is None or self.topology.get(target_id) is None:
            return None
        return physical_path(self.topology.adjacency(), source_id, target_id)

    def routing_table(self, device_id) -> List[RouteEntry]:
        return self.engine.routing_table(device_id)

    def ping(self, source_id, target_id) -> PingResult:
        """test_connectivity, plus an entry in the ping log."""
        res = self.engine.test_connectivity(source_id, target_id)
        src = self.topology.get(source_id)
        dst = self.topology.get(target_id)
        self.ping_log.record(
            source=src.name if src else "Unknown",
            target=dst.name if dst else "Unknown",
            success=res.success,
            msg=res.message,
        )
        self.session.add(
            "ping",
            source=source_id,
            target=target_id,
            success=res.success,
            failure=res.failure.value if res.failure else None,
        )
        return res

    def ping_history(self) -> List[PingLogEntry]:
        return list(self.ping_log.entries)

    # ───────────────────────────── Annotations ─────────────────────────────

    def add_text_label(self, x: float, y: float, text: str) -> TextLabelRecord:
        lbl = TextLabelRecord(id=self._next_text_id, x=x, y=y, text=text)
        self._next_text_id += 1
        self.text_labels.append(lbl)
        return lbl

    def remove_text_label(self, label_id: int) -> bool:
        before = len(self.text_labels)
        self.text_labels = [l for l in self.text_labels if l.id != label_id]
        return len(self.text_labels) != before

    # ───────────────────────────── Serialization ─────────────────────────────

    def export_project(self) -> Dict[str, Any]:
        return export_project(self.topology, self.text_labels, self._next_text_id)

    def load_project(self, data: Any) -> None:
        """Replace the whole session with a saved project.

        Raises ProjectError (and leaves the current topology alone) if the data
        does not describe a consistent network.
        """
        project = parse_project(data)
        topo = build_topology(project, self.config.switch_port_count)
        labels, next_text_id = load_text_labels(project)

        self.negotiator.cancel_all()
        self.topology.devices = topo.devices
        self.topology.next_id = topo.next_id
        self.text_labels = labels
        self._next_text_id = next_text_id

        # Links saved mid-negotiation pick it up again from the start.
        for link in self.topology.links():
            ia = self.topology.devices[link.a.device_id].get_interface(link.a.interface)
            ib = self.topology.devices[link.b.device_id].get_interface(link.b.interface)
            if ia.link_state != LinkState.UP or ib.link_state != LinkState.UP:
                self.negotiator.start(link)

        self.session.add("project_loaded", devices=len(self.topology), links=len(self.topology.links()))

    def save_to_path(self, path: str) -> None:
        save_json(path, self.export_project())

    def load_from_path(self, path: str) -> None:
        self.load_project(load_json(path))

    # ───────────────────────────── Internals ─────────────────────────────

    def _on_link_state(self, device_id: int, if_name: str, state: LinkState) -> None:
        self.session.add("link_state", id=device_id, interface=if_name, state=state.value)

