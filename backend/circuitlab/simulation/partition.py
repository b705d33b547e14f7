"""Circuit Partitioner — split the netlist into independent clusters."""

from __future__ import annotations

from circuitlab.simulation.models import Circuit, Netlist, SimComponent, SimWire


def build_circuits(
    components: list[SimComponent],
    netlist: Netlist,
    wires: list[SimWire],
) -> list[Circuit]:
    """Group components that share at least one net.

    Every component lands in exactly one cluster; a component whose
    terminals touch nothing else forms a degenerate cluster of its own.
    """
    component_nets: dict[str, list[str]] = {}
    for net in netlist.nets.values():
        for component_id, _ in net.terminals:
            nets = component_nets.setdefault(component_id, [])
            if net.id not in nets:
                nets.append(net.id)

    by_id = {c.placed_id: c for c in components}
    visited: set[str] = set()
    circuits: list[Circuit] = []

    for component in components:
        if component.placed_id in visited:
            continue

        member_ids: list[str] = []
        net_ids: dict[str, None] = {}
        stack = [component.placed_id]

        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            member_ids.append(current)

            for net_id in component_nets.get(current, []):
                net_ids[net_id] = None
                for peer_id in netlist.nets[net_id].component_ids():
                    if peer_id not in visited:
                        stack.append(peer_id)

        members = set(member_ids)
        nets = [netlist.nets[net_id] for net_id in net_ids]
        circuits.append(
            Circuit(
                id=f"circuit-{len(circuits)}",
                nets=nets,
                components=[by_id[cid] for cid in member_ids if cid in by_id],
                wires=[
                    w
                    for w in wires
                    if w.start_component_id in members
                    and w.end_component_id in members
                ],
                has_ground=any(n.is_ground for n in nets),
                has_power=any(n.is_power for n in nets),
            )
        )

    return circuits
