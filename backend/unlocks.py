from collections import deque


def build_reverse_prereq_map(graph) -> dict[str, list[str]]:
    """
    Builds a reverse prerequisite map: for each track, which tracks directly
    list it as a prerequisite.

    Returns: {"intro": ["business_plan", "company_form"], ...}

    Dependents are ordered by (order, track_id). Only direct prerequisites
    (one level deep); prerequisite ids missing from the catalog are skipped.
    """
    reverse: dict[str, list[str]] = {}
    for track in graph.ordered():
        for prereq_id in track.prerequisites:
            if prereq_id not in graph:
                continue
            dependents = reverse.setdefault(prereq_id, [])
            if track.track_id not in dependents:
                dependents.append(track.track_id)
    return reverse


def successors(track_id: str, graph, reverse_map: dict[str, list[str]] | None = None) -> list[str]:
    """
    Next tracks along the routing graph.

    A track's explicit next_tracks list wins when declared (even if empty);
    otherwise the tracks naming it as a prerequisite are used. Ids the
    catalog does not define are dropped.
    """
    track = graph.get(track_id)
    if track is None:
        return []
    if track.next_tracks is not None:
        return [t for t in track.next_tracks if t in graph]
    if reverse_map is None:
        reverse_map = build_reverse_prereq_map(graph)
    return list(reverse_map.get(track_id, []))


def default_path_order(graph) -> list[str]:
    """
    Breadth-first discovery order of tracks reachable from the entry track.

    Worklist traversal with a visited set owned by this call, so cycles and
    diamonds are visited once and deep graphs never hit recursion limits.
    """
    reverse_map = build_reverse_prereq_map(graph)
    start = graph.entry_track_id
    order: list[str] = []
    visited = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        order.append(current)
        for next_id in successors(current, graph, reverse_map):
            if next_id not in visited:
                visited.add(next_id)
                queue.append(next_id)
    return order


def get_direct_unlocks(
    track_id: str,
    reverse_map: dict[str, list[str]],
    limit: int = 3,
) -> list[str]:
    """
    Returns up to `limit` tracks directly unlocked by completing `track_id`.
    A track is "unlocked" if it lists `track_id` as a direct prerequisite.
    """
    return reverse_map.get(track_id, [])[:limit]


def unreachable_tracks(graph) -> list[str]:
    """Tracks never visited by the default-path traversal, in catalog order."""
    reachable = set(default_path_order(graph))
    return [t.track_id for t in graph.ordered() if t.track_id not in reachable]
