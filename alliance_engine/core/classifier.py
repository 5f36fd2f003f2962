"""
Nation classification into aid slot roles
"""

from alliance_engine.core.domain import (
    DRA_AID_SLOTS,
    AidSlotConfig,
    Configured,
    Derived,
    Nation,
    SlotSource,
)

# Policy thresholds for stat-derived slot allocation
INFRASTRUCTURE_THRESHOLD = 3000
TECHNOLOGY_THRESHOLD = 500

# Allocation for nations at or above the technology threshold
TECH_BUYER_SEND_CASH = 2
TECH_BUYER_GET_TECH = 4

# Nations without a stored configuration are assumed to own a DRA
DERIVED_HAS_DRA = True


def derive_slot_config(nation: Nation) -> AidSlotConfig:
    """
    Derive a default slot allocation from economic stats.

    - high infrastructure, low technology: sells technology
    - low infrastructure, low technology: receives cash
    - technology at or above the threshold: sends cash, buys technology
    """
    if nation.technology >= TECHNOLOGY_THRESHOLD:
        return AidSlotConfig(
            send_cash=TECH_BUYER_SEND_CASH,
            get_tech=TECH_BUYER_GET_TECH,
            has_dra=DERIVED_HAS_DRA,
        )
    if nation.infrastructure > INFRASTRUCTURE_THRESHOLD:
        return AidSlotConfig(send_tech=DRA_AID_SLOTS, has_dra=DERIVED_HAS_DRA)
    return AidSlotConfig(get_cash=DRA_AID_SLOTS, has_dra=DERIVED_HAS_DRA)


def slot_source(nation: Nation, explicit_config: AidSlotConfig | None = None) -> SlotSource:
    """Wrap a nation's configuration state in its slot source variant"""
    if explicit_config is not None:
        return Configured(explicit_config)
    return Derived(nation)


def resolve(source: SlotSource) -> AidSlotConfig:
    """Resolve a slot source into a concrete configuration"""
    if isinstance(source, Configured):
        return source.config
    return derive_slot_config(source.nation)


class NationClassifier:
    """Assigns aid slot roles to nations"""

    def classify(
        self, nation: Nation, explicit_config: AidSlotConfig | None = None
    ) -> AidSlotConfig:
        """Explicit configuration always wins; otherwise derive from stats"""
        return resolve(slot_source(nation, explicit_config))

    def classify_roster(
        self, roster: list[Nation], configs: dict[int, AidSlotConfig]
    ) -> dict[int, AidSlotConfig]:
        """Resolve every roster nation's configuration, keyed by nation id"""
        return {nation.id: self.classify(nation, configs.get(nation.id)) for nation in roster}
