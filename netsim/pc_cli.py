from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
import shlex

from . import addressing
from .core import NetworkSim
from .errors import NetsimError
from .topology import Device


@dataclass
class PCResult:
    output: str = ""
    prompt: str = ""


@dataclass
class PCContext:
    sim: NetworkSim
    device_id: int

    def prompt(self) -> str:
        dev = self.sim.get_device(self.device_id)
        return f"{dev.name if dev else self.device_id}> "


class PCCLIEngine:
    """Very small 'PC' style console.

    Purpose: configure a host's IP/subnet/gateway and run ping/traceroute
    against other devices (by name, id or address).
    """

    def __init__(self, sim: NetworkSim):
        self.sim = sim

    def new_context(self, device_id: int) -> PCContext:
        return PCContext(sim=self.sim, device_id=device_id)

    def execute(self, ctx: PCContext, line: str) -> PCResult:
        raw = (line or "").rstrip("\n")
        stripped = raw.strip()
        if stripped == "":
            return PCResult(output="", prompt=ctx.prompt())

        # Help
        if stripped == "?" or stripped.endswith(" ?"):
            return PCResult(output=self._help(), prompt=ctx.prompt())

        try:
            argv = shlex.split(stripped)
        except ValueError:
            argv = stripped.split()

        cmd = (argv[0] if argv else "").lower()

        if cmd in ("exit", "quit"):
            return PCResult(output="__CLOSE__", prompt=ctx.prompt())

        dev = ctx.sim.get_device(ctx.device_id)
        if dev is None:
            return PCResult(output="% Device not found.", prompt=ctx.prompt())

        try:
            out = self._dispatch(ctx, dev, cmd, argv)
        except NetsimError as exc:
            out = f"% {exc}"
        return PCResult(output=out, prompt=ctx.prompt())

    def _dispatch(self, ctx: PCContext, dev: Device, cmd: str, argv: List[str]) -> str:
        if cmd in ("ip", "ipconfig"):
            if len(argv) < 3:
                return "% Usage: ip <ip> <mask> [gateway]"
            gw = argv[3] if len(argv) >= 4 else None
            ctx.sim.configure_host(dev.id, argv[1], argv[2], gw)
            return ""

        if cmd in ("gateway", "gw"):
            if len(argv) != 2:
                return "% Usage: gateway <ip>"
            ctx.sim.set_gateway(dev.id, argv[1])
            return ""

        if cmd in ("show", "showip", "show-ip"):
            itf = dev.interfaces[0] if dev.interfaces else None
            lines = [f"{dev.name} configuration:"]
            lines.append(f"  Interface: {itf.name if itf else 'none'}")
            lines.append(f"  IP Address: {dev.address or 'unset'}")
            lines.append(f"  Subnet Mask: {dev.mask or 'unset'}")
            lines.append(f"  Default Gateway: {dev.gateway or 'unset'}")
            if itf is not None and itf.peer is not None:
                lines.append(f"  Link: {itf.link_state.value}")
            return "\n".join(lines)

        if cmd == "ping":
            if len(argv) < 2:
                return "% Usage: ping <device|ip>"
            target = self._resolve_target(argv[1])
            if target is None:
                return "% Unknown destination."
            return ctx.sim.ping(dev.id, target.id).message

        if cmd in ("traceroute", "tracert"):
            if len(argv) < 2:
                return "% Usage: traceroute <device|ip>"
            target = self._resolve_target(argv[1])
            if target is None:
                return "% Unknown destination."
            return self._traceroute(dev, target)

        if cmd == "route":
            entries = ctx.sim.routing_table(dev.id)
            lines = ["Codes: C - connected, S - static, * - candidate default", ""]
            for e in entries:
                via = f" via {e.next_hop}" if e.next_hop else " is directly connected"
                lines.append(f"{e.code:<3} {e.cidr:<18}{via}, {e.interface}")
            return "\n".join(lines)

        return "% Unknown command."

    def _resolve_target(self, ref: str) -> Optional[Device]:
        if addressing.is_valid_address(ref):
            owner = self.sim.topology.find_address_owner(ref)
            return owner[0] if owner else None
        return self.sim.find_device(ref)

    def _traceroute(self, dev: Device, target: Device) -> str:
        res = self.sim.test_connectivity(dev.id, target.id)
        lines = [f"Tracing route to {target.name}", ""]
        if not res.success:
            lines.append(f"1  * * *   {res.message}")
            return "\n".join(lines)
        for hop, dev_id in enumerate(res.route[1:], start=1):
            node = self.sim.get_device(dev_id)
            addrs = node.addressed_interfaces()
            shown = addrs[0].address if addrs else node.name
            lines.append(f"{hop:<2} 1 ms  {shown}  [{node.name}]")
        return "\n".join(lines)

    def _help(self) -> str:
        return "\n".join(
            [
                "ip <ip> <mask> [gateway]",
                "gateway <ip>",
                "show",
                "ping <device|ip>",
                "traceroute <device|ip>",
                "route",
                "exit",
            ]
        )
