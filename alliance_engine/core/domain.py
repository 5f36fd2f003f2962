"""
Domain types shared by the matching and stagger engines
"""

from dataclasses import dataclass, field
from enum import Enum

# Usable aid slots without / with a Disaster Relief Agency
BASE_AID_SLOTS = 5
DRA_AID_SLOTS = 6

MIN_PRIORITY = 1
MAX_PRIORITY = 3
# Reserved for urgent cases (anarchy); never user-configurable
URGENT_PRIORITY = 0

ANARCHY_GOVERNMENT = "anarchy"


class AllianceEngineError(Exception):
    """Base error for the alliance engine"""


class InvalidRecordError(AllianceEngineError):
    """A record violates a domain invariant at construction time"""


class SlotLimitExceededError(AllianceEngineError):
    """Slot configuration assigns more slots than the nation can use"""

    def __init__(self, assigned: int, limit: int):
        self.assigned = assigned
        self.limit = limit
        super().__init__(f"{assigned} aid slots assigned, limit is {limit}")


class InvalidRequestError(AllianceEngineError):
    """A caller supplied arguments the engine cannot act on"""


class Activity(str, Enum):
    """Nation activity recency as published by the game"""

    LAST_3_DAYS = "Active In The Last 3 Days"
    THIS_WEEK = "Active This Week"
    LAST_WEEK = "Active Last Week"
    THREE_WEEKS_AGO = "Active Three Weeks Ago"
    OVER_THREE_WEEKS = "Active More Than Three Weeks Ago"

    @classmethod
    def parse(cls, text: str | None) -> "Activity":
        """Match activity text case-insensitively, defaulting to the stalest bucket"""
        if isinstance(text, cls):
            return text
        normalized = (text or "").strip().lower()
        for activity in cls:
            if activity.value.lower() == normalized:
                return activity
        return cls.OVER_THREE_WEEKS


class AidType(str, Enum):
    """Aid slot category"""

    CASH = "cash"
    TECHNOLOGY = "technology"


class OfferStatus(str, Enum):
    """Persisted aid offer status"""

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, text: "str | OfferStatus") -> "OfferStatus":
        if isinstance(text, cls):
            return text
        normalized = (text or "").strip().lower()
        if normalized in ("active", "approved"):
            return cls.ACCEPTED
        try:
            return cls(normalized)
        except ValueError:
            return cls.PENDING


class WarStatus(str, Enum):
    """Persisted war status"""

    ACTIVE = "active"
    ENDED = "ended"
    EXPIRED = "expired"

    @classmethod
    def parse(cls, text: "str | WarStatus") -> "WarStatus":
        if isinstance(text, cls):
            return text
        normalized = (text or "").strip().lower()
        if normalized in ("peace",):
            return cls.ENDED
        try:
            return cls(normalized)
        except ValueError:
            return cls.ACTIVE


class StaggerStatus(str, Enum):
    """Defensive war spread for a nation"""

    EMPTY = "empty"
    STAGGERED = "staggered"
    SAME_DAY = "same-day"


class SlotUsage(str, Enum):
    """How a slot configuration compares with the usable slot limit"""

    UNDER = "under"
    FULL = "full"
    OVER = "over"


def parse_grouped_number(value: str | int | float | None) -> float:
    """
    Parse a numeric stat published with grouping separators.

    "1,234.56" -> 1234.56. Blank or unparsable input is treated as 0.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = value.replace(",", "").strip()
    if not cleaned:
        return 0.0
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


@dataclass(frozen=True)
class Nation:
    """Snapshot of a member nation"""

    id: int
    ruler_name: str
    nation_name: str
    alliance_id: int | None
    strength: float = 0.0
    technology: float = 0.0
    infrastructure: float = 0.0
    land: float = 0.0
    activity: Activity = Activity.LAST_3_DAYS
    war_mode: bool = True
    nuclear_weapons: int = 0
    government_type: str = ""
    alliance_name: str = ""
    warchest: float | None = None
    warchest_age_days: int | None = None
    rank: int | None = None
    discord_handle: str | None = None

    def __post_init__(self):
        for name in ("strength", "technology", "infrastructure", "land", "nuclear_weapons"):
            if getattr(self, name) < 0:
                raise InvalidRecordError(f"Nation {self.id}: {name} cannot be negative")
        if self.warchest is not None and self.warchest < 0:
            raise InvalidRecordError(f"Nation {self.id}: warchest cannot be negative")

    @property
    def is_anarchy(self) -> bool:
        return self.government_type.strip().lower() == ANARCHY_GOVERNMENT

    @property
    def posture(self) -> str:
        return "War" if self.war_mode else "Peace Mode"


@dataclass(frozen=True)
class AidSlotConfig:
    """Per-nation aid slot allocation"""

    send_tech: int = 0
    send_cash: int = 0
    get_tech: int = 0
    get_cash: int = 0
    send_priority: int = MAX_PRIORITY
    receive_priority: int = MAX_PRIORITY
    has_dra: bool = False

    def __post_init__(self):
        for name in ("send_tech", "send_cash", "get_tech", "get_cash"):
            if getattr(self, name) < 0:
                raise InvalidRecordError(f"{name} cannot be negative")
        for name in ("send_priority", "receive_priority"):
            value = getattr(self, name)
            if not MIN_PRIORITY <= value <= MAX_PRIORITY:
                raise InvalidRecordError(
                    f"{name} must be between {MIN_PRIORITY} and {MAX_PRIORITY}, got {value}"
                )

    @property
    def slot_limit(self) -> int:
        return DRA_AID_SLOTS if self.has_dra else BASE_AID_SLOTS

    @property
    def assigned(self) -> int:
        return self.send_tech + self.send_cash + self.get_tech + self.get_cash

    @property
    def unassigned(self) -> int:
        return self.slot_limit - self.assigned

    @property
    def usage(self) -> SlotUsage:
        if self.assigned > self.slot_limit:
            return SlotUsage.OVER
        if self.assigned < self.slot_limit:
            return SlotUsage.UNDER
        return SlotUsage.FULL

    def ensure_within_limit(self) -> None:
        """Raise if more slots are assigned than the nation can use"""
        if self.usage is SlotUsage.OVER:
            raise SlotLimitExceededError(self.assigned, self.slot_limit)

    def send_capacity(self, aid_type: AidType) -> int:
        return self.send_cash if aid_type is AidType.CASH else self.send_tech

    def receive_capacity(self, aid_type: AidType) -> int:
        return self.get_cash if aid_type is AidType.CASH else self.get_tech

    def to_dict(self) -> dict:
        return {
            "sendTech": self.send_tech,
            "sendCash": self.send_cash,
            "getTech": self.get_tech,
            "getCash": self.get_cash,
            "send_priority": self.send_priority,
            "receive_priority": self.receive_priority,
        }


@dataclass(frozen=True)
class Configured:
    """Slot source backed by a coordinator's explicit configuration"""

    config: AidSlotConfig


@dataclass(frozen=True)
class Derived:
    """Slot source to be derived from the nation's economic stats"""

    nation: Nation


SlotSource = Configured | Derived


@dataclass(frozen=True)
class AidOffer:
    """Foreign aid offer between two nations"""

    offer_id: int
    sender_id: int
    recipient_id: int
    created_at: str
    money: float = 0.0
    technology: float = 0.0
    soldiers: int = 0
    reason: str = ""
    status: OfferStatus = OfferStatus.ACCEPTED
    sender_alliance_id: int | None = None
    recipient_alliance_id: int | None = None

    def __post_init__(self):
        for name in ("money", "technology", "soldiers"):
            if getattr(self, name) < 0:
                raise InvalidRecordError(f"Aid offer {self.offer_id}: {name} cannot be negative")

    @property
    def aid_type(self) -> AidType | None:
        """Slot category the offer occupies; soldier-only offers occupy none"""
        if self.technology > 0:
            return AidType.TECHNOLOGY
        if self.money > 0:
            return AidType.CASH
        return None

    @property
    def pair(self) -> tuple[int, int]:
        return (min(self.sender_id, self.recipient_id), max(self.sender_id, self.recipient_id))


@dataclass(frozen=True)
class War:
    """War between a declaring and a receiving nation"""

    war_id: int
    declaring_id: int
    receiving_id: int
    ends_at: str
    started_at: str = ""
    status: WarStatus = WarStatus.ACTIVE
    declaring_alliance_id: int | None = None
    receiving_alliance_id: int | None = None
    attack_percent: float = 0.0
    defend_percent: float = 0.0

    def involves(self, nation_id: int) -> bool:
        return nation_id in (self.declaring_id, self.receiving_id)


@dataclass(frozen=True)
class NationWarSummary:
    """Active wars of one nation and their stagger status"""

    nation: Nation
    attacking_wars: tuple[War, ...] = field(default_factory=tuple)
    defending_wars: tuple[War, ...] = field(default_factory=tuple)
    stagger_status: StaggerStatus = StaggerStatus.EMPTY
    max_defending_wars: int = 3

    @property
    def open_defensive_slots(self) -> int:
        return max(0, self.max_defending_wars - len(self.defending_wars))

    @property
    def is_full(self) -> bool:
        return self.open_defensive_slots == 0

    def has_war_with(self, nation_id: int) -> bool:
        """True if any active war links this nation with nation_id"""
        return any(
            war.involves(nation_id) for war in (*self.attacking_wars, *self.defending_wars)
        )
