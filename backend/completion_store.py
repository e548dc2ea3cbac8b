class CompletionStore:
    """Set of completed track ids, kept in the order they were completed."""

    def __init__(self, ids=None):
        self._ids: dict[str, None] = {}
        if ids:
            self.replace(ids)

    def add(self, track_id: str) -> None:
        self._ids.setdefault(track_id, None)

    def discard(self, track_id: str) -> None:
        self._ids.pop(track_id, None)

    def ids(self) -> list[str]:
        return list(self._ids)

    def replace(self, ids) -> None:
        self._ids = dict.fromkeys(str(i) for i in ids if i)

    def clear(self) -> None:
        self._ids.clear()

    def __contains__(self, track_id) -> bool:
        return track_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self):
        return iter(list(self._ids))
