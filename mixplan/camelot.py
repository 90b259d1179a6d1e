"""
Camelot wheel arithmetic shared by the sequencer and the similarity search.

Keys are written ``<1-12><A|B>``: the number is the position on the wheel,
``A`` is the minor ring and ``B`` the major ring. All distances are taken on
the 12-position ring, so 12 and 1 are neighbours.
"""

from enum import Enum
from typing import List, NamedTuple, Optional


WHEEL_SIZE = 12


class CamelotKey(NamedTuple):
    number: int
    mode: str  # "A" or "B"

    def __str__(self) -> str:
        return f"{self.number}{self.mode}"


class KeyRelation(str, Enum):
    """Relation tiers between two keys, strongest first."""

    SAME = "same"
    RELATIVE = "relative"
    ADJACENT = "adjacent"
    CROSS_MODE_ADJACENT = "cross_mode_adjacent"
    ENERGY_BOOST = "energy_boost"
    CLASH = "clash"
    # At least one side could not be compared
    UNPARSEABLE = "unparseable"
    MISSING = "missing"

    @property
    def is_known(self) -> bool:
        return self not in (KeyRelation.UNPARSEABLE, KeyRelation.MISSING)


# Tiers that count as "mixable without a jump", in order.
COMPATIBLE_TIERS = (
    KeyRelation.SAME,
    KeyRelation.RELATIVE,
    KeyRelation.ADJACENT,
    KeyRelation.CROSS_MODE_ADJACENT,
)


def parse_camelot(value: Optional[str]) -> Optional[CamelotKey]:
    """Parse ``"8A"`` style notation. Returns None when the text is not a valid key."""
    if value is None:
        return None
    text = value.strip().upper()
    if len(text) < 2:
        return None

    mode = text[-1]
    num_part = text[:-1]
    if mode not in ("A", "B") or not num_part.isdigit():
        return None

    number = int(num_part)
    if number < 1 or number > WHEEL_SIZE:
        return None
    return CamelotKey(number, mode)


def ring_distance(a: int, b: int) -> int:
    """Shortest distance between two wheel positions (0-6)."""
    diff = abs(a - b) % WHEEL_SIZE
    return min(diff, WHEEL_SIZE - diff)


def ring_step(a: int, b: int) -> int:
    """Signed shortest step from ``a`` to ``b``: 12 -> 1 is +1, 1 -> 12 is -1."""
    return ((b - a + WHEEL_SIZE // 2) % WHEEL_SIZE) - WHEEL_SIZE // 2


class CamelotWheel:
    """Classifies key pairs into :class:`KeyRelation` tiers."""

    def relation(self, key_a: Optional[str], key_b: Optional[str]) -> KeyRelation:
        """
        Classify the pair. A None or blank key on either side gives MISSING;
        text that is not a valid key gives UNPARSEABLE.

        The result is symmetric: ``relation(a, b) == relation(b, a)``.
        """
        if not key_a or not key_a.strip() or not key_b or not key_b.strip():
            return KeyRelation.MISSING

        a = parse_camelot(key_a)
        b = parse_camelot(key_b)
        if a is None or b is None:
            return KeyRelation.UNPARSEABLE

        return self.relation_between(a, b)

    @staticmethod
    def relation_between(a: CamelotKey, b: CamelotKey) -> KeyRelation:
        distance = ring_distance(a.number, b.number)
        same_mode = a.mode == b.mode

        if distance == 0:
            return KeyRelation.SAME if same_mode else KeyRelation.RELATIVE
        if distance == 1:
            return KeyRelation.ADJACENT if same_mode else KeyRelation.CROSS_MODE_ADJACENT
        if distance == 2 and same_mode:
            return KeyRelation.ENERGY_BOOST
        return KeyRelation.CLASH

    def step_label(self, key_a: Optional[str], key_b: Optional[str]) -> str:
        """Signed wheel movement for explanations, e.g. ``"+1"`` or ``"-2"``."""
        a = parse_camelot(key_a)
        b = parse_camelot(key_b)
        if a is None or b is None:
            return ""
        return f"{ring_step(a.number, b.number):+d}"

    def compatible_keys(self, key: str) -> List[str]:
        """
        All keys that mix from ``key`` without a jump, strongest tier first.

        Returns an empty list for an unparseable key.
        """
        origin = parse_camelot(key)
        if origin is None:
            return []

        by_tier = {tier: [] for tier in COMPATIBLE_TIERS}
        for number in range(1, WHEEL_SIZE + 1):
            for mode in ("A", "B"):
                other = CamelotKey(number, mode)
                rel = self.relation_between(origin, other)
                if rel in by_tier:
                    by_tier[rel].append(other)

        result: List[str] = []
        for tier in COMPATIBLE_TIERS:
            # Walk outwards from the origin so "-1" and "+1" keep a stable order
            ordered = sorted(by_tier[tier], key=lambda k: (ring_step(origin.number, k.number), k.mode))
            result.extend(str(k) for k in ordered)
        return result
