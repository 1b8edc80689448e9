from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from . import addressing
from .config import HOST_INTERFACE, ROUTER_INTERFACES, SWITCH_PORT_COUNT
from .errors import (
    AddressError,
    ConfigError,
    DuplicateAddressError,
    UnknownDeviceError,
    UnknownInterfaceError,
)


class DeviceKind(str, Enum):
    HOST = "host"
    SERVER = "server"
    SWITCH = "switch"
    ROUTER = "router"


class Media(str, Enum):
    ETHERNET = "ethernet"
    SERIAL = "serial"
    CONSOLE = "console"


class LinkState(str, Enum):
    DOWN = "down"
    UP = "up"


# Display labels. Hosts can be shown as a PC or a Laptop; both behave the same.
DEFAULT_LABELS = {
    DeviceKind.HOST: "PC",
    DeviceKind.SERVER: "Server",
    DeviceKind.SWITCH: "Switch",
    DeviceKind.ROUTER: "Router",
}

LABEL_KINDS = {
    "PC": DeviceKind.HOST,
    "Laptop": DeviceKind.HOST,
    "Server": DeviceKind.SERVER,
    "Switch": DeviceKind.SWITCH,
    "Router": DeviceKind.ROUTER,
}


@dataclass(frozen=True)
class LinkEnd:
    device_id: int
    interface: str


@dataclass(frozen=True)
class Link:
    a: LinkEnd
    b: LinkEnd


@dataclass
class Interface:
    name: str
    media: Media = Media.ETHERNET

    # L3; empty string means unconfigured
    address: str = ""
    mask: str = ""

    peer: Optional[LinkEnd] = None
    link_state: LinkState = LinkState.DOWN

    def __post_init__(self):
        self.media = Media(self.media)
        self.link_state = LinkState(self.link_state)

    def has_address(self) -> bool:
        return bool(self.address and self.mask)

    def is_connected(self) -> bool:
        return self.peer is not None

    def is_up(self) -> bool:
        return self.peer is not None and self.link_state == LinkState.UP


@dataclass
class Device:
    id: int
    kind: DeviceKind
    name: str
    label: str = ""
    x: float = 0.0
    y: float = 0.0

    # Host/server only
    gateway: str = ""

    interfaces: List[Interface] = field(default_factory=list)

    def __post_init__(self):
        self.kind = DeviceKind(self.kind)
        if not self.label:
            self.label = DEFAULT_LABELS[self.kind]

    @property
    def is_router(self) -> bool:
        return self.kind == DeviceKind.ROUTER

    @property
    def is_switch(self) -> bool:
        return self.kind == DeviceKind.SWITCH

    # Endpoints conceptually have "one IP": the first interface's.
    @property
    def address(self) -> str:
        return self.interfaces[0].address if self.interfaces else ""

    @property
    def mask(self) -> str:
        return self.interfaces[0].mask if self.interfaces else ""

    def get_interface(self, name: str) -> Optional[Interface]:
        for itf in self.interfaces:
            if itf.name == name:
                return itf
        return None

    def addressed_interfaces(self) -> List[Interface]:
        """Interfaces this device can send from or answer on.

        A router answers on every addressed interface; an endpoint only on its
        first one.
        """
        if self.is_router:
            return [i for i in self.interfaces if i.address]
        if self.interfaces and self.interfaces[0].address:
            return [self.interfaces[0]]
        return []

    def connected_interfaces(self) -> List[Interface]:
        return [i for i in self.interfaces if i.peer is not None]


def provision_interfaces(kind: DeviceKind, switch_port_count: int = SWITCH_PORT_COUNT) -> List[Interface]:
    if kind == DeviceKind.ROUTER:
        return [Interface(name=n, media=m) for n, m in ROUTER_INTERFACES]
    if kind == DeviceKind.SWITCH:
        return [Interface(name=f"FastEthernet0/{n}") for n in range(1, switch_port_count + 1)]
    name, media = HOST_INTERFACE
    return [Interface(name=name, media=media)]


class Topology:
    """The device collection and the cabling between interfaces.

    Peer references are kept symmetric: every mutation that touches a cable
    updates both ends before returning.
    """

    def __init__(self, switch_port_count: int = SWITCH_PORT_COUNT):
        self.devices: Dict[int, Device] = {}
        self.next_id = 1
        self.switch_port_count = switch_port_count

    # ───────────────────────────── Devices ─────────────────────────────

    def create_device(
        self,
        kind,
        x: float = 0.0,
        y: float = 0.0,
        name: Optional[str] = None,
        label: Optional[str] = None,
    ) -> Device:
        try:
            kind = DeviceKind(kind)
        except ValueError:
            if kind not in LABEL_KINDS:
                raise ConfigError(f"Unknown device kind: {kind!r}")
            label = label or kind
            kind = LABEL_KINDS[kind]
        if label is not None and LABEL_KINDS.get(label) != kind:
            raise ConfigError(f"Label {label!r} does not fit a {kind.value}")

        dev_id = self.next_id
        self.next_id += 1
        label = label or DEFAULT_LABELS[kind]
        dev = Device(
            id=dev_id,
            kind=kind,
            name=name or f"{label}-{dev_id:02d}",
            label=label,
            x=float(x),
            y=float(y),
            interfaces=provision_interfaces(kind, self.switch_port_count),
        )
        self.devices[dev_id] = dev
        return dev

    def get(self, device_id) -> Optional[Device]:
        return self.devices.get(device_id)

    def require(self, device_id) -> Device:
        dev = self.devices.get(device_id)
        if dev is None:
            raise UnknownDeviceError(f"Unknown device: {device_id!r}")
        return dev

    def require_interface(self, device_id, if_name: str) -> Tuple[Device, Interface]:
        dev = self.require(device_id)
        itf = dev.get_interface(if_name)
        if itf is None:
            raise UnknownInterfaceError(f"{dev.name} has no interface {if_name!r}")
        return dev, itf

    def remove_device(self, device_id) -> Optional[Device]:
        dev = self.devices.get(device_id)
        if dev is None:
            return None
        for itf in dev.interfaces:
            if itf.peer is not None:
                self.disconnect(dev.id, itf.name, itf.peer.device_id, itf.peer.interface)
        return self.devices.pop(device_id)

    def clear(self):
        self.devices.clear()
        self.next_id = 1

    def __iter__(self) -> Iterator[Device]:
        return iter(list(self.devices.values()))

    def __len__(self) -> int:
        return len(self.devices)

    # ───────────────────────────── Cabling ─────────────────────────────

    def connect(self, a_id, a_if: str, b_id, b_if: str) -> bool:
        """Cable two free interfaces together. Returns False without touching anything otherwise."""
        a = self.devices.get(a_id)
        b = self.devices.get(b_id)
        if a is None or b is None or a.id == b.id:
            return False
        ia = a.get_interface(a_if)
        ib = b.get_interface(b_if)
        if ia is None or ib is None:
            return False
        if ia.peer is not None or ib.peer is not None:
            return False

        ia.peer = LinkEnd(b.id, ib.name)
        ib.peer = LinkEnd(a.id, ia.name)
        ia.link_state = LinkState.DOWN
        ib.link_state = LinkState.DOWN
        return True

    def disconnect(self, a_id, a_if: str, b_id, b_if: str) -> bool:
        """Remove the cable between two interfaces. Returns True if anything was severed."""
        severed = False
        for dev_id, if_name, other in ((a_id, a_if, LinkEnd(b_id, b_if)), (b_id, b_if, LinkEnd(a_id, a_if))):
            dev = self.devices.get(dev_id)
            itf = dev.get_interface(if_name) if dev else None
            if itf is None or itf.peer != other:
                continue
            itf.peer = None
            itf.link_state = LinkState.DOWN
            severed = True
        return severed

    def peer_interface(self, itf: Interface) -> Optional[Tuple[Device, Interface]]:
        if itf.peer is None:
            return None
        dev = self.devices.get(itf.peer.device_id)
        if dev is None:
            return None
        pitf = dev.get_interface(itf.peer.interface)
        if pitf is None:
            return None
        return dev, pitf

    def links(self) -> List[Link]:
        """Every cable exactly once, in device/interface order."""
        out: List[Link] = []
        seen = set()
        for dev in self.devices.values():
            for itf in dev.interfaces:
                if itf.peer is None:
                    continue
                here = LinkEnd(dev.id, itf.name)
                key = frozenset((here, itf.peer))
                if key in seen:
                    continue
                seen.add(key)
                out.append(Link(a=here, b=itf.peer))
        return out

    def links_of(self, device_id) -> List[Link]:
        return [l for l in self.links() if device_id in (l.a.device_id, l.b.device_id)]

    def media_mismatches(self) -> List[Link]:
        out = []
        for l in self.links():
            ia = self.devices[l.a.device_id].get_interface(l.a.interface)
            ib = self.devices[l.b.device_id].get_interface(l.b.interface)
            if ia.media != ib.media:
                out.append(l)
        return out

    def adjacency(self, up_only: bool = False) -> Dict[int, List[int]]:
        """Device-level view of the cabling: id -> neighbour ids.

        Parallel cables between the same two devices collapse into one edge.
        Neighbours are listed in interface order.
        """
        graph: Dict[int, List[int]] = {dev_id: [] for dev_id in self.devices}
        for dev in self.devices.values():
            for itf in dev.interfaces:
                if itf.peer is None or itf.peer.device_id not in self.devices:
                    continue
                if up_only and not itf.is_up():
                    continue
                nbrs = graph[dev.id]
                if itf.peer.device_id not in nbrs:
                    nbrs.append(itf.peer.device_id)
        return graph

    # ───────────────────────────── Addressing ─────────────────────────────

    def configure_interface(self, device_id, if_name: str, address: str, mask: str) -> Interface:
        dev, itf = self.require_interface(device_id, if_name)
        address = (address or "").strip()
        mask = (mask or "").strip()

        if not address and not mask:
            itf.address = ""
            itf.mask = ""
            return itf

        if dev.is_switch:
            raise ConfigError(f"{dev.name} is a switch; switch ports carry no address")
        if not address or not mask:
            raise ConfigError("Address and mask must be set together")
        if not addressing.is_valid_address(address):
            raise AddressError(f"Invalid IPv4 address: {address!r}")
        if not addressing.is_netmask(mask):
            raise AddressError(f"Invalid subnet mask: {mask!r}")

        owner = self.find_address_owner(address)
        if owner is not None and owner[1] is not itf:
            odev, oitf = owner
            raise DuplicateAddressError(f"Address {address} is already assigned to {odev.name} ({oitf.name})")

        itf.address = address
        itf.mask = mask
        return itf

    def set_gateway(self, device_id, gateway: str) -> None:
        dev = self.require(device_id)
        gateway = (gateway or "").strip()
        if gateway and dev.kind not in (DeviceKind.HOST, DeviceKind.SERVER):
            raise ConfigError(f"{dev.name} is a {dev.kind.value}; only hosts and servers take a default gateway")
        if gateway and not addressing.is_valid_address(gateway):
            raise AddressError(f"Invalid gateway address: {gateway!r}")
        dev.gateway = gateway

    def rename(self, device_id, name: str) -> None:
        self.require(device_id).name = name

    def find_address_owner(self, address: str) -> Optional[Tuple[Device, Interface]]:
        for dev in self.devices.values():
            for itf in dev.interfaces:
                if itf.address and itf.address == address:
                    return dev, itf
        return None

    def router_owning(self, address: str) -> Optional[Device]:
        for dev in self.devices.values():
            if dev.is_router and any(i.address == address for i in dev.interfaces):
                return dev
        return None
