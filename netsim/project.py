"""Saved-project format (`.netsim` files).

The schema keeps the field names the browser editor has always written
(`type`, `ip`, `connectedDeviceId`, ...), so old exercise files still load.
Loading is two-pass: pydantic checks the shape, then `check_project` checks
what the shape cannot express (peer symmetry, addressing, unique names).
Nothing touches the live topology until both passes are clean.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from . import addressing
from .errors import ProjectError
from .topology import LABEL_KINDS, Device, DeviceKind, Interface, LinkEnd, Topology

SCHEMA_VERSION = 1


class InterfaceRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="Interface name, unique within its device")
    type: Literal["ethernet", "serial", "console"] = Field("ethernet", description="Media type")
    ip: str = Field("", description="Dotted-quad address; empty when unconfigured")
    mask: str = Field("", description="Dotted-quad netmask; empty when unconfigured")
    connectedDeviceId: Optional[int] = Field(None, description="Peer device id")
    connectedInterfaceName: Optional[str] = Field(None, description="Peer interface name")
    status: Literal["up", "down"] = Field("up", description="Link state; only meaningful when connected")

    @field_validator("ip", "mask", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return "" if v is None else v


class DeviceRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int = Field(..., ge=1)
    type: Literal["PC", "Laptop", "Server", "Switch", "Router"]
    name: str = ""
    x: float = 0.0
    y: float = 0.0
    gateway: str = ""
    # Mirror of interfaces[0]; written for older readers, ignored on load.
    ip: str = ""
    mask: str = ""
    # Older files also stored a neighbour id list; adjacency is rebuilt from the interfaces.
    connections: Optional[List[int]] = None
    interfaces: List[InterfaceRecord] = Field(default_factory=list)

    @field_validator("gateway", "ip", "mask", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return "" if v is None else v


class TextLabelRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    x: float = 0.0
    y: float = 0.0
    text: str = ""


class ProjectFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    schemaVersion: int = Field(SCHEMA_VERSION, description="Schema version")
    devices: List[DeviceRecord] = Field(default_factory=list)
    textLabels: List[TextLabelRecord] = Field(default_factory=list)
    nextId: int = Field(1, ge=1)
    nextTextId: int = Field(1, ge=1)
    timestamp: Optional[str] = None


# ───────────────────────────── Export ─────────────────────────────


def device_record(dev: Device) -> DeviceRecord:
    return DeviceRecord(
        id=dev.id,
        type=dev.label,
        name=dev.name,
        x=dev.x,
        y=dev.y,
        gateway=dev.gateway,
        ip=dev.address,
        mask=dev.mask,
        interfaces=[
            InterfaceRecord(
                name=i.name,
                type=i.media.value,
                ip=i.address,
                mask=i.mask,
                connectedDeviceId=i.peer.device_id if i.peer else None,
                connectedInterfaceName=i.peer.interface if i.peer else None,
                status=i.link_state.value,
            )
            for i in dev.interfaces
        ],
    )


def export_project(topology: Topology, text_labels: List[TextLabelRecord], next_text_id: int) -> Dict[str, Any]:
    project = ProjectFile(
        schemaVersion=SCHEMA_VERSION,
        devices=[device_record(d) for d in topology],
        textLabels=list(text_labels),
        nextId=topology.next_id,
        nextTextId=next_text_id,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    return project.model_dump(mode="json")


# ───────────────────────────── Import ─────────────────────────────


def parse_project(data: Any) -> ProjectFile:
    """Structural validation. Raises ProjectError listing every schema problem."""
    try:
        return ProjectFile.model_validate(data)
    except ValidationError as exc:
        problems = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
            problems.append(f"{loc}: {err.get('msg', 'invalid')}")
        raise ProjectError(problems) from exc


def check_project(project: ProjectFile) -> List[str]:
    """Semantic problems the schema cannot catch. Empty list means loadable."""
    problems: List[str] = []
    if project.schemaVersion != SCHEMA_VERSION:
        problems.append(f"Unsupported schemaVersion {project.schemaVersion}")

    by_id: Dict[int, DeviceRecord] = {}
    for d in project.devices:
        if d.id in by_id:
            problems.append(f"Duplicate device id: {d.id}")
            continue
        by_id[d.id] = d

    addresses: Dict[str, str] = {}
    for d in by_id.values():
        kind = LABEL_KINDS[d.type]
        where = f"device {d.id} ({d.name or d.type})"

        names = [i.name for i in d.interfaces]
        if len(names) != len(set(names)):
            problems.append(f"{where}: duplicate interface names")
        if kind == DeviceKind.ROUTER and not d.interfaces:
            problems.append(f"{where}: a router needs at least one interface")
        if kind in (DeviceKind.HOST, DeviceKind.SERVER) and len(d.interfaces) != 1:
            problems.append(f"{where}: an end device has exactly one interface")

        if d.gateway:
            if kind not in (DeviceKind.HOST, DeviceKind.SERVER):
                problems.append(f"{where}: only hosts and servers take a default gateway")
            elif not addressing.is_valid_address(d.gateway):
                problems.append(f"{where}: invalid gateway {d.gateway!r}")

        for i in d.interfaces:
            problems.extend(_check_interface(d, where, kind, i, by_id, addresses))
    return problems


def _check_interface(
    d: DeviceRecord,
    where: str,
    kind: DeviceKind,
    i: InterfaceRecord,
    by_id: Dict[int, DeviceRecord],
    addresses: Dict[str, str],
) -> List[str]:
    problems: List[str] = []
    here = f"{where} {i.name}"

    if i.ip or i.mask:
        if kind == DeviceKind.SWITCH:
            problems.append(f"{here}: switch ports carry no address")
        elif not (i.ip and i.mask):
            problems.append(f"{here}: address and mask must be set together")
        else:
            if not addressing.is_valid_address(i.ip):
                problems.append(f"{here}: invalid address {i.ip!r}")
            elif i.ip in addresses:
                problems.append(f"{here}: address {i.ip} already used by {addresses[i.ip]}")
            else:
                addresses[i.ip] = here
            if not addressing.is_netmask(i.mask):
                problems.append(f"{here}: invalid mask {i.mask!r}")

    if (i.connectedDeviceId is None) != (i.connectedInterfaceName is None):
        problems.append(f"{here}: half-specified peer")
        return problems
    if i.connectedDeviceId is None:
        return problems

    me = d.id
    peer_dev = by_id.get(i.connectedDeviceId)
    if peer_dev is None:
        problems.append(f"{here}: peer device {i.connectedDeviceId} does not exist")
        return problems
    if peer_dev.id == me:
        problems.append(f"{here}: cabled to its own device")
        return problems
    peer_itf = next((p for p in peer_dev.interfaces if p.name == i.connectedInterfaceName), None)
    if peer_itf is None:
        problems.append(f"{here}: peer interface {i.connectedInterfaceName!r} does not exist on device {peer_dev.id}")
    elif peer_itf.connectedDeviceId != me or peer_itf.connectedInterfaceName != i.name:
        problems.append(f"{here}: peer link is not symmetric")
    return problems


def build_topology(project: ProjectFile, switch_port_count: int) -> Topology:
    """Build a fresh Topology from a checked project."""
    problems = check_project(project)
    if problems:
        raise ProjectError(problems)

    topo = Topology(switch_port_count=switch_port_count)
    for d in project.devices:
        dev = Device(
            id=d.id,
            kind=LABEL_KINDS[d.type],
            name=d.name or f"{d.type}-{d.id:02d}",
            label=d.type,
            x=d.x,
            y=d.y,
            gateway=d.gateway,
            interfaces=[
                Interface(
                    name=i.name,
                    media=i.type,
                    address=i.ip,
                    mask=i.mask,
                    peer=LinkEnd(i.connectedDeviceId, i.connectedInterfaceName) if i.connectedDeviceId is not None else None,
                    link_state=i.status,
                )
                for i in d.interfaces
            ],
        )
        topo.devices[dev.id] = dev

    max_id = max(topo.devices, default=0)
    topo.next_id = max(project.nextId, max_id + 1)
    return topo


def load_text_labels(project: ProjectFile) -> Tuple[List[TextLabelRecord], int]:
    labels = list(project.textLabels)
    next_text_id = max([project.nextTextId] + [l.id + 1 for l in labels])
    return labels, next_text_id


# ───────────────────────────── Files ─────────────────────────────


def save_json(path: str, data: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def load_json(path: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise ProjectError(f"Not a project file: {exc}") from exc
