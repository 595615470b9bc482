"""Landmark registry: external landmark id -> slot in the joint state.

Index 0 of the joint state is always the robot, so landmark slots start at 1
and are handed out in insertion order. Once assigned, an index never changes
and is never reused until the registry is cleared on reset.
"""

from typing import Dict, Iterator, Optional, Tuple

from ekfslam.errors import InvariantViolation


class LandmarkRegistry:
    """
    Bijective mapping from landmark id to state index.

    Example:
        >>> registry = LandmarkRegistry()
        >>> registry.resolve(5) is None
        True
        >>> registry.register(5)
        1
        >>> registry.register(9)
        2
        >>> registry.resolve(5)
        1
    """

    def __init__(self):
        self._index_by_id: Dict[int, int] = {}

    def resolve(self, landmark_id: int) -> Optional[int]:
        """Return the state index of `landmark_id`, or None when unknown."""
        return self._index_by_id.get(landmark_id)

    def register(self, landmark_id: int) -> int:
        """
        Assign the next free state index to `landmark_id`.

        Callers check resolve() first; registering a known id is a defect in
        the caller and raises InvariantViolation.

        Returns:
            The newly assigned index (>= 1).
        """
        if landmark_id in self._index_by_id:
            raise InvariantViolation(
                f"Landmark {landmark_id} already registered at index "
                f"{self._index_by_id[landmark_id]}"
            )
        index = len(self._index_by_id) + 1
        self._index_by_id[landmark_id] = index
        return index

    def copy(self) -> "LandmarkRegistry":
        """Independent registry with the same assignments."""
        other = LandmarkRegistry()
        other._index_by_id = dict(self._index_by_id)
        return other

    def clear(self) -> None:
        self._index_by_id = {}

    def ids(self) -> Tuple[int, ...]:
        """Registered ids ordered by state index."""
        return tuple(sorted(self._index_by_id, key=self._index_by_id.__getitem__))

    def check_consistency(self) -> None:
        """
        Verify that indices are unique and exactly cover 1..N.

        Raises:
            InvariantViolation: If two ids share an index or a slot is missing.
        """
        indices = sorted(self._index_by_id.values())
        if indices != list(range(1, len(indices) + 1)):
            raise InvariantViolation(
                f"Landmark registry is not a bijection onto 1..{len(indices)}: "
                f"{self._index_by_id}"
            )

    def __len__(self) -> int:
        return len(self._index_by_id)

    def __contains__(self, landmark_id: int) -> bool:
        return landmark_id in self._index_by_id

    def __iter__(self) -> Iterator[int]:
        return iter(self.ids())
