"""Breadth-first search over the device adjacency graph (cabling only, no IP)."""

from __future__ import annotations

from collections import deque
from typing import Dict, Hashable, List, Mapping, Optional, Sequence

Graph = Mapping[Hashable, Sequence[Hashable]]


def exists_physical_path(graph: Graph, start, end) -> bool:
    if start == end:
        return True
    seen = {start}
    q = deque([start])
    while q:
        cur = q.popleft()
        for nb in graph.get(cur, ()):
            if nb == end:
                return True
            if nb not in seen:
                seen.add(nb)
                q.append(nb)
    return False


def physical_path(graph: Graph, start, end) -> Optional[List]:
    """Shortest hop sequence from start to end, inclusive, or None.

    Ties go to whichever neighbour the graph lists first.
    """
    prev: Dict = {start: None}
    q = deque([start])
    while q:
        cur = q.popleft()
        if cur == end:
            out = []
            n = cur
            while n is not None:
                out.append(n)
                n = prev[n]
            out.reverse()
            return out
        for nb in graph.get(cur, ()):
            if nb not in prev:
                prev[nb] = cur
                q.append(nb)
    return None
