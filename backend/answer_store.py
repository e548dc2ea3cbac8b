"""
Flat answer-key → value store for one session.

Keys are namespaced by track by convention ('<track_id>.<question>'), but
lookups are always by full key so eligibility criteria can read answers
recorded by any track. The store remembers which track recorded each key,
so a track reset can drop exactly the answers that track produced.
"""

from normalizer import AnswerValue, normalize_answer


class AnswerStore:
    def __init__(self, answers: dict | None = None):
        self._values: dict[str, AnswerValue] = {}
        self._owners: dict[str, str] = {}
        if answers:
            self.merge(answers)

    @classmethod
    def from_nested(cls, saved: dict) -> "AnswerStore":
        """Restore the persisted per-track shape: {track_id: {key: value}}."""
        store = cls()
        for track_id, track_answers in (saved or {}).items():
            if not isinstance(track_answers, dict):
                continue
            store.merge(track_answers, track_id=track_id)
        return store

    def to_nested(self) -> dict:
        """Inverse of from_nested. Keys without an owner go under ''."""
        nested: dict[str, dict] = {}
        for key, answer in self._values.items():
            owner = self._owners.get(key, "")
            nested.setdefault(owner, {})[key] = answer.to_raw()
        return nested

    def get(self, key: str) -> AnswerValue | None:
        return self._values.get(key)

    def set(self, key: str, raw, track_id: str | None = None, question_type: str | None = None) -> None:
        """Store an answer. Setting None removes the key."""
        answer = normalize_answer(raw, question_type)
        if answer is None:
            self.delete(key)
            return
        self._values[key] = answer
        if track_id:
            self._owners[key] = track_id

    def delete(self, key: str) -> None:
        self._values.pop(key, None)
        self._owners.pop(key, None)

    def merge(self, answers: dict, track_id: str | None = None) -> None:
        for key, raw in answers.items():
            self.set(key, raw, track_id=track_id)

    def clear(self) -> None:
        self._values.clear()
        self._owners.clear()

    def owner_of(self, key: str) -> str | None:
        return self._owners.get(key)

    def keys_for_track(self, track_id: str) -> list[str]:
        return [k for k, owner in self._owners.items() if owner == track_id]

    def remove_track(self, track_id: str, extra_keys=()) -> list[str]:
        """
        Drop every answer recorded by track_id plus any of extra_keys
        (normally the track's own question keys). Returns removed keys.
        """
        doomed = list(dict.fromkeys(list(self.keys_for_track(track_id)) + list(extra_keys)))
        removed = [k for k in doomed if k in self._values]
        for key in doomed:
            self.delete(key)
        return removed

    def snapshot(self) -> dict:
        return {key: answer.to_raw() for key, answer in self._values.items()}

    def __contains__(self, key) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self):
        return iter(list(self._values))
