"""
Optional: MCP server for reachability questions about a saved project.

Every tool is stateless: it takes the project JSON (the same document the
editor saves) and answers from a fresh simulator built from it.

Run (example):
  pip install -e .
  python mcp_server/netsim_mcp_server.py

Then connect an MCP client to:
  http://localhost:8000/mcp
"""

from __future__ import annotations

from typing import Any, Dict, List

from mcp.server.fastmcp import FastMCP

from netsim import NetworkSim, ProjectError
from netsim.project import check_project, parse_project

mcp = FastMCP(
    "Netsim MCP Server",
    instructions="Tools for validating network exercise projects and answering ping/route questions about them.",
    stateless_http=True,
    json_response=True,
)


def _load(project_json: Dict[str, Any]) -> NetworkSim:
    sim = NetworkSim()
    sim.load_project(project_json)
    return sim


def _names(sim: NetworkSim, ids) -> List[str]:
    return [sim.get_device(i).name for i in ids] if ids else []


@mcp.tool()
def validate_project_json(project_json: Dict[str, Any]) -> Dict[str, Any]:
    """Validate a project JSON object; returns problems list."""
    try:
        problems = check_project(parse_project(project_json))
    except ProjectError as exc:
        problems = exc.problems
    return {"ok": len(problems) == 0, "problems": problems}


@mcp.tool()
def test_connectivity(project_json: Dict[str, Any], source_id: int, target_id: int) -> Dict[str, Any]:
    """Ping target_id from source_id and return the classified result."""
    try:
        sim = _load(project_json)
    except ProjectError as exc:
        return {"ok": False, "problems": exc.problems}
    res = sim.test_connectivity(source_id, target_id)
    return {
        "ok": True,
        "success": res.success,
        "failure": res.failure.value if res.failure else None,
        "scenario": res.scenario,
        "hops": res.hops,
        "message": res.message,
    }


@mcp.tool()
def compute_route(project_json: Dict[str, Any], source_id: int, target_id: int) -> Dict[str, Any]:
    """IP-level route (device ids and names) from source to target, or null."""
    try:
        sim = _load(project_json)
    except ProjectError as exc:
        return {"ok": False, "problems": exc.problems}
    route = sim.compute_route(source_id, target_id)
    return {"ok": True, "route": route, "names": _names(sim, route)}


@mcp.tool()
def physical_trace(project_json: Dict[str, Any], source_id: int, target_id: int) -> Dict[str, Any]:
    """Shortest cabled path between two devices, ignoring IP configuration."""
    try:
        sim = _load(project_json)
    except ProjectError as exc:
        return {"ok": False, "problems": exc.problems}
    path = sim.physical_trace(source_id, target_id)
    return {"ok": True, "path": path, "names": _names(sim, path)}


@mcp.tool()
def routing_table(project_json: Dict[str, Any], device_id: int) -> Dict[str, Any]:
    """Connected networks of one device."""
    try:
        sim = _load(project_json)
    except ProjectError as exc:
        return {"ok": False, "problems": exc.problems}
    if sim.get_device(device_id) is None:
        return {"ok": False, "problems": [f"Unknown device: {device_id}"]}
    return {
        "ok": True,
        "routes": [
            {"code": e.code, "network": e.cidr, "interface": e.interface, "nextHop": e.next_hop}
            for e in sim.routing_table(device_id)
        ],
    }


@mcp.tool()
def generate_two_lan_lab() -> Dict[str, Any]:
    """Generate a small configured lab: PC-01 -- Router-02 -- PC-03.

    Each PC sits on its own /24 with the router as default gateway, so a ping
    between the PCs succeeds through one router hop.
    """
    return build_two_lan_lab().export_project()


def build_two_lan_lab() -> NetworkSim:
    sim = NetworkSim()
    pc1 = sim.create_device("host", 150, 300)
    r1 = sim.create_device("router", 400, 300)
    pc2 = sim.create_device("host", 650, 300)

    sim.connect(pc1.id, "FastEthernet0", r1.id, "FastEthernet0/0")
    sim.connect(r1.id, "FastEthernet0/1", pc2.id, "FastEthernet0")

    sim.configure_interface(r1.id, "FastEthernet0/0", "192.168.1.1", "255.255.255.0")
    sim.configure_interface(r1.id, "FastEthernet0/1", "192.168.2.1", "255.255.255.0")
    sim.configure_host(pc1.id, "192.168.1.10", "255.255.255.0", "192.168.1.1")
    sim.configure_host(pc2.id, "192.168.2.10", "255.255.255.0", "192.168.2.1")

    # Saved labs open with their links already negotiated.
    sim.scheduler.advance(sim.config.settle_delay_ms)
    return sim


if __name__ == "__main__":
    # Streamable HTTP transport is recommended in the MCP SDK docs.
    mcp.run(transport="streamable-http")
