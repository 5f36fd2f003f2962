"""
Time window calculations for aid offers and wars.

All game timestamps are US Central time (America/Chicago). Remaining time is
counted in whole Central calendar days so that countdowns match the game:
an aid offer sent today shows the full 10 days and loses one day at each
local midnight.
"""

import logging
import zoneinfo
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum

from alliance_engine.core.domain import AidOffer, OfferStatus, War, WarStatus

logger = logging.getLogger(__name__)

TZ_CENTRAL = zoneinfo.ZoneInfo("America/Chicago")

AID_OFFER_WINDOW_DAYS = 10
# A war's end date is its last day; it lapses the following day
WAR_EXPIRY_GRACE_DAYS = 1
EXPIRING_THRESHOLD_DAYS = 1

_GAME_FORMATS = (
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
)


class WindowStatus(str, Enum):
    """Validity of a time window"""

    ACTIVE = "active"
    EXPIRING = "expiring"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TimeWindow:
    """Result of a window calculation"""

    expires_at: datetime | None
    days_remaining: int
    is_expired: bool

    @classmethod
    def unparsable(cls) -> "TimeWindow":
        return cls(expires_at=None, days_remaining=0, is_expired=True)

    @property
    def status(self) -> WindowStatus:
        if self.is_expired:
            return WindowStatus.EXPIRED
        if self.days_remaining <= EXPIRING_THRESHOLD_DAYS:
            return WindowStatus.EXPIRING
        return WindowStatus.ACTIVE


def now_central() -> datetime:
    """Current time in game (Central) time"""
    return datetime.now(TZ_CENTRAL)


def _to_central(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=TZ_CENTRAL)
    return value.astimezone(TZ_CENTRAL)


def parse_game_timestamp(value: str | datetime | None) -> datetime | None:
    """
    Parse a game timestamp into an aware Central datetime.

    Accepts "M/D/YYYY", "M/D/YYYY H:MM:SS", "M/D/YYYY H:MM:SS AM/PM",
    ISO-8601 strings and datetime objects (naive values are taken as Central).

    Returns:
        The parsed datetime, or None when the value cannot be parsed
    """
    if isinstance(value, datetime):
        return _to_central(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=TZ_CENTRAL)
    if not isinstance(value, str) or not value.strip():
        logger.warning("Unparsable game timestamp: %r", value)
        return None

    text = " ".join(value.split())
    for fmt in _GAME_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=TZ_CENTRAL)
        except ValueError:
            continue
    try:
        return _to_central(datetime.fromisoformat(text))
    except ValueError:
        logger.warning("Unparsable game timestamp: %r", value)
        return None


def game_date(value: str | datetime | None) -> date | None:
    """Central calendar date of a game timestamp"""
    parsed = parse_game_timestamp(value)
    return parsed.date() if parsed else None


def compute_window(
    start: str | datetime | None, days: int, now: datetime | None = None
) -> TimeWindow:
    """
    Compute a validity window of `days` days starting at `start`.

    Args:
        start: Raw game timestamp the window starts from
        days: Window length in days
        now: Reference time (defaults to the current Central time)

    Returns:
        TimeWindow; unparsable starts are reported as expired
    """
    started = parse_game_timestamp(start)
    if started is None:
        return TimeWindow.unparsable()

    expires_at = started + timedelta(days=days)
    today = _to_central(now).date() if now else now_central().date()
    days_remaining = max(0, (expires_at.date() - today).days)
    return TimeWindow(
        expires_at=expires_at,
        days_remaining=days_remaining,
        is_expired=days_remaining == 0,
    )


def aid_window(created_at: str | datetime | None, now: datetime | None = None) -> TimeWindow:
    """Window of an aid offer (10 days from creation)"""
    return compute_window(created_at, AID_OFFER_WINDOW_DAYS, now)


def war_window(ends_at: str | datetime | None, now: datetime | None = None) -> TimeWindow:
    """Window of a war, lapsing the day after its end date"""
    return compute_window(ends_at, WAR_EXPIRY_GRACE_DAYS, now)


def is_offer_current(offer: AidOffer, now: datetime | None = None) -> bool:
    """True if the offer still occupies a slot on both sides"""
    if offer.status in (OfferStatus.EXPIRED, OfferStatus.CANCELLED):
        return False
    return not aid_window(offer.created_at, now).is_expired


def is_offer_lapsed(offer: AidOffer, now: datetime | None = None) -> bool:
    """True if the offer ran out rather than being cancelled"""
    if offer.status is OfferStatus.CANCELLED:
        return False
    if offer.status is OfferStatus.EXPIRED:
        return True
    window = aid_window(offer.created_at, now)
    return window.is_expired and window.expires_at is not None


def is_war_current(war: War, now: datetime | None = None) -> bool:
    """True if the war is still being fought"""
    if war.status in (WarStatus.ENDED, WarStatus.EXPIRED):
        return False
    return not war_window(war.ends_at, now).is_expired
