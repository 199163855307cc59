"""
Stems, branches and the sexagenary (Jia Zi) cycle.

Handles:
- Heavenly Stem / Earthly Branch definitions
- The canonical 60-entry Stem-Branch table and its index arithmetic
- Pillar values built from canonical labels
- Luck pillar direction from year-stem polarity and gender

Everything here is an immutable, process-wide constant or a pure function.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Union

from bazi_core.errors import InvalidChartInput, UnknownPillarLabel


# ============================================================
# FUNDAMENTAL DATA STRUCTURES
# ============================================================

class Polarity(Enum):
    YANG = "yang"
    YIN = "yin"


class Element(Enum):
    WOOD = "wood"
    FIRE = "fire"
    EARTH = "earth"
    METAL = "metal"
    WATER = "water"


class Gender(Enum):
    MALE = "male"
    FEMALE = "female"

    @classmethod
    def parse(cls, value: Union["Gender", str]) -> "Gender":
        """Accept a Gender, its value or its name in any case."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidChartInput(
                f"Unknown gender {value!r}; expected 'male' or 'female'",
                details={"gender": value},
            ) from None


class Direction(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"

    @property
    def description(self) -> str:
        if self is Direction.FORWARD:
            return "顺行 (阳男/阴女)"
        return "逆行 (阴男/阳女)"


@dataclass(frozen=True)
class HeavenlyStem:
    chinese: str
    pinyin: str
    element: Element
    polarity: Polarity
    index: int  # 0-9 in the cycle

    def __str__(self):
        return f"{self.pinyin} ({self.polarity.value} {self.element.value})"


@dataclass(frozen=True)
class EarthlyBranch:
    chinese: str
    pinyin: str
    animal: str
    element: Element
    polarity: Polarity
    index: int  # 0-11 in the cycle

    def __str__(self):
        return f"{self.pinyin} ({self.animal})"


@dataclass(frozen=True)
class Pillar:
    stem: HeavenlyStem
    branch: EarthlyBranch
    position: str = ""  # "year", "month", "day", "hour", "luck"

    @property
    def label(self) -> str:
        return self.stem.chinese + self.branch.chinese

    @property
    def pinyin(self) -> str:
        return f"{self.stem.pinyin} {self.branch.pinyin}"

    @property
    def index(self) -> int:
        return index_of(self.label)

    def __str__(self):
        return f"{self.label} {self.pinyin} ({self.stem.polarity.value} {self.stem.element.value} {self.branch.animal})"

    def to_dict(self):
        return {
            "position": self.position,
            "label": self.label,
            "pinyin": self.pinyin,
            "index": self.index,
            "stem": {
                "chinese": self.stem.chinese,
                "pinyin": self.stem.pinyin,
                "element": self.stem.element.value,
                "polarity": self.stem.polarity.value,
            },
            "branch": {
                "chinese": self.branch.chinese,
                "pinyin": self.branch.pinyin,
                "animal": self.branch.animal,
                "element": self.branch.element.value,
                "polarity": self.branch.polarity.value,
            },
        }


@dataclass(frozen=True)
class FourPillars:
    year: Pillar
    month: Pillar
    day: Pillar
    hour: Pillar

    def ordered(self) -> list[Pillar]:
        return [self.year, self.month, self.day, self.hour]

    def labels(self) -> dict:
        return {p.position: p.label for p in self.ordered()}


# ============================================================
# STEM AND BRANCH DEFINITIONS
# ============================================================

HEAVENLY_STEMS = (
    HeavenlyStem("甲", "Jia", Element.WOOD, Polarity.YANG, 0),
    HeavenlyStem("乙", "Yi", Element.WOOD, Polarity.YIN, 1),
    HeavenlyStem("丙", "Bing", Element.FIRE, Polarity.YANG, 2),
    HeavenlyStem("丁", "Ding", Element.FIRE, Polarity.YIN, 3),
    HeavenlyStem("戊", "Wu", Element.EARTH, Polarity.YANG, 4),
    HeavenlyStem("己", "Ji", Element.EARTH, Polarity.YIN, 5),
    HeavenlyStem("庚", "Geng", Element.METAL, Polarity.YANG, 6),
    HeavenlyStem("辛", "Xin", Element.METAL, Polarity.YIN, 7),
    HeavenlyStem("壬", "Ren", Element.WATER, Polarity.YANG, 8),
    HeavenlyStem("癸", "Gui", Element.WATER, Polarity.YIN, 9),
)

EARTHLY_BRANCHES = (
    EarthlyBranch("子", "Zi", "Rat", Element.WATER, Polarity.YANG, 0),
    EarthlyBranch("丑", "Chou", "Ox", Element.EARTH, Polarity.YIN, 1),
    EarthlyBranch("寅", "Yin", "Tiger", Element.WOOD, Polarity.YANG, 2),
    EarthlyBranch("卯", "Mao", "Rabbit", Element.WOOD, Polarity.YIN, 3),
    EarthlyBranch("辰", "Chen", "Dragon", Element.EARTH, Polarity.YANG, 4),
    EarthlyBranch("巳", "Si", "Snake", Element.FIRE, Polarity.YIN, 5),
    EarthlyBranch("午", "Wu", "Horse", Element.FIRE, Polarity.YANG, 6),
    EarthlyBranch("未", "Wei", "Goat", Element.EARTH, Polarity.YIN, 7),
    EarthlyBranch("申", "Shen", "Monkey", Element.METAL, Polarity.YANG, 8),
    EarthlyBranch("酉", "You", "Rooster", Element.METAL, Polarity.YIN, 9),
    EarthlyBranch("戌", "Xu", "Dog", Element.EARTH, Polarity.YANG, 10),
    EarthlyBranch("亥", "Hai", "Pig", Element.WATER, Polarity.YIN, 11),
)

# Lookup helpers
STEM_BY_CHINESE = {s.chinese: s for s in HEAVENLY_STEMS}
STEM_BY_PINYIN = {s.pinyin.lower(): s for s in HEAVENLY_STEMS}

YANG_STEMS = frozenset(s.chinese for s in HEAVENLY_STEMS if s.polarity is Polarity.YANG)
YIN_STEMS = frozenset(s.chinese for s in HEAVENLY_STEMS if s.polarity is Polarity.YIN)


# ============================================================
# SEXAGENARY CYCLE
# ============================================================
#
# Index i pairs stem i % 10 with branch i % 12. Stems and branches
# only ever meet with matching parity, which gives 60 distinct labels:
# 0 = 甲子 (Jia Zi), 1 = 乙丑, ..., 59 = 癸亥 (Gui Hai).

CYCLE_LENGTH = 60

JIA_ZI = tuple(
    HEAVENLY_STEMS[i % 10].chinese + EARTHLY_BRANCHES[i % 12].chinese
    for i in range(CYCLE_LENGTH)
)

_INDEX_BY_LABEL = {label: i for i, label in enumerate(JIA_ZI)}
_INDEX_BY_PINYIN = {
    (HEAVENLY_STEMS[i % 10].pinyin + EARTHLY_BRANCHES[i % 12].pinyin).lower(): i
    for i in range(CYCLE_LENGTH)
}


def _pinyin_key(label: str) -> str:
    return "".join(ch for ch in label.lower() if ch.isalpha())


def index_of(label: str) -> int:
    """
    Position of a Stem-Branch label in the 60-entry cycle.

    Accepts the canonical Chinese label ("甲子") or a pinyin spelling
    ("Jiazi", "Jia Zi", "jia-zi").

    Raises:
        UnknownPillarLabel: label is not one of the 60 canonical pairs
    """
    if not isinstance(label, str):
        raise UnknownPillarLabel(label)
    key = label.strip()
    if key in _INDEX_BY_LABEL:
        return _INDEX_BY_LABEL[key]
    pinyin = _pinyin_key(key)
    if pinyin in _INDEX_BY_PINYIN:
        return _INDEX_BY_PINYIN[pinyin]
    raise UnknownPillarLabel(label)


def step(index: int, direction: Direction) -> int:
    """Move one place through the cycle, wrapping at both ends."""
    if direction is Direction.FORWARD:
        return (index + 1) % CYCLE_LENGTH
    return (index - 1 + CYCLE_LENGTH) % CYCLE_LENGTH


def label_at(index: int) -> str:
    """Label at a cycle index. Indices outside 0-59 wrap modulo 60."""
    return JIA_ZI[index % CYCLE_LENGTH]


def pillar_at(index: int, position: str = "") -> Pillar:
    """Build the Pillar at a cycle index (taken modulo 60)."""
    i = index % CYCLE_LENGTH
    return Pillar(
        stem=HEAVENLY_STEMS[i % 10],
        branch=EARTHLY_BRANCHES[i % 12],
        position=position,
    )


def pillar_from_label(label: str, position: str = "") -> Pillar:
    return pillar_at(index_of(label), position)


def pillar_from_indices(stem_index: int, branch_index: int, position: str = "") -> Pillar:
    """
    Pillar from separate stem (0-9) and branch (0-11) indices.

    Raises:
        UnknownPillarLabel: stem and branch have different parity
    """
    label = HEAVENLY_STEMS[stem_index % 10].chinese + EARTHLY_BRANCHES[branch_index % 12].chinese
    return pillar_from_label(label, position)


# ============================================================
# LUCK PILLAR DIRECTION
# ============================================================

def _as_stem(year_stem) -> HeavenlyStem:
    if isinstance(year_stem, HeavenlyStem):
        return year_stem
    if isinstance(year_stem, Pillar):
        return year_stem.stem
    if isinstance(year_stem, str):
        key = year_stem.strip()
        if key[:1] in STEM_BY_CHINESE:
            # Full pillar labels ("甲子") carry the stem first
            return STEM_BY_CHINESE[key[:1]]
        if key.lower() in STEM_BY_PINYIN:
            return STEM_BY_PINYIN[key.lower()]
    raise UnknownPillarLabel(year_stem)


def luck_direction(year_stem, gender: Union[Gender, str]) -> Direction:
    """
    Direction in which the luck pillars progress.

    - Yang year stem + Male OR Yin year stem + Female → FORWARD
    - Yang year stem + Female OR Yin year stem + Male → BACKWARD

    Args:
        year_stem: year stem as HeavenlyStem, Pillar, Chinese character
            or pinyin
        gender: Gender or "male"/"female"
    """
    stem = _as_stem(year_stem)
    gender = Gender.parse(gender)
    year_yang = stem.chinese in YANG_STEMS
    if gender is Gender.MALE:
        return Direction.FORWARD if year_yang else Direction.BACKWARD
    return Direction.BACKWARD if year_yang else Direction.FORWARD


def stem_as_dict(stem: HeavenlyStem) -> dict:
    data = asdict(stem)
    data["element"] = stem.element.value
    data["polarity"] = stem.polarity.value
    return data
