import re
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field
from enum import Enum

from ai_tools_dashboard.errors import ConfigurationError, MalformedEntryError

NAME_FIELDS = ("keyword", "name", "product_name", "productName")

_NUMERIC_KEY = re.compile(r"^\d+$")


class PlatformView(str, Enum):
    COMBINED = "combined"
    REDDIT = "reddit"
    YOUTUBE = "youtube"

    @classmethod
    def parse(cls, value) -> "PlatformView":
        """Parse a view name or page slug. The slug "all" means combined."""
        if isinstance(value, PlatformView):
            return value
        text = str(value or "").strip().lower()
        if text in ("all", "combined"):
            return cls.COMBINED
        try:
            return cls(text)
        except ValueError:
            raise ConfigurationError(f"Unknown platform view: {value!r}") from None

    @property
    def slug(self) -> str:
        return "all" if self is PlatformView.COMBINED else self.value


class TimeWindow(int, Enum):
    DAYS_7 = 7
    DAYS_30 = 30
    DAYS_90 = 90

    @classmethod
    def parse(cls, value) -> "TimeWindow":
        """Accepts 7, "7" or "7d"."""
        if isinstance(value, TimeWindow):
            return value
        text = str(value if value is not None else "").strip().lower().removesuffix("d")
        try:
            return cls(int(text))
        except ValueError:
            raise ConfigurationError(f"Invalid time window: {value!r}") from None

    @property
    def bucket_count(self) -> int:
        return 7 if self is TimeWindow.DAYS_7 else 6


def resolve_name(metrics: Mapping) -> str | None:
    """Product name from the first non-empty of keyword, name, product_name, productName."""
    for key in NAME_FIELDS:
        value = metrics.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


@dataclass(frozen=True)
class Candidate:
    """An entry whose identity has been resolved but not yet filtered or scored."""

    name: str
    metrics: Mapping
    order: int


@dataclass(frozen=True)
class SequenceShape:
    """Ordered array of entry objects. Position is significant."""

    entries: Sequence
    preserves_order = True

    def items(self):
        return enumerate(self.entries)

    def extract_candidate(self, key, value, order: int) -> Candidate:
        if not isinstance(value, Mapping):
            raise MalformedEntryError(key, "entry is not an object")
        name = resolve_name(value)
        if name is None:
            raise MalformedEntryError(key, "no name field")
        return Candidate(name=name, metrics=value, order=order)


@dataclass(frozen=True)
class KeyedMapShape:
    """Mapping of entry key to metrics object. Iteration order carries no meaning."""

    entries: Mapping
    preserves_order = False

    def items(self):
        return self.entries.items()

    def extract_candidate(self, key, value, order: int) -> Candidate:
        if not isinstance(value, Mapping):
            raise MalformedEntryError(key, "entry is not an object")
        key_text = str(key).strip()
        name = resolve_name(value)
        if name is None:
            # Opaque numeric keys never stand in for a product name
            if _NUMERIC_KEY.match(key_text) or not key_text:
                raise MalformedEntryError(key, "numeric key without a name field")
            name = key_text
        return Candidate(name=name, metrics=value, order=order)


RawShape = SequenceShape | KeyedMapShape


@dataclass
class RankedItem:
    rank: int
    name: str
    category: str
    score: float
    velocity: float = 0.0
    momentum: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TrendSeries:
    label: str
    values: list[float]
    color: str = "#ccc"


@dataclass
class TrendDataset:
    labels: list[str] = field(default_factory=list)
    series: list[TrendSeries] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "labels": list(self.labels),
            "datasets": [
                {"label": s.label, "data": list(s.values), "color": s.color}
                for s in self.series
            ],
        }


@dataclass
class RankingResult:
    items: list[RankedItem] = field(default_factory=list)
    status: str = "ok"  # ok | not_found | no_data | error
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "message": self.message,
            "items": [item.to_dict() for item in self.items],
        }
