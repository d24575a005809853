from typing import Optional, Protocol

from game.models import AccountSummary, PlayerProfile, PlayerStats


class StatsStrategy(Protocol):
    """Maps an account summary to combat stats"""

    def compute(self, summary: AccountSummary) -> PlayerStats:
        ...


class BaselineStatsStrategy:
    """Same stats for every player, whatever their GitHub activity"""

    HP = 500
    DAMAGE = 50
    ATTACK_SPEED = 50
    MOVE_SPEED = 100
    CRIT = 10
    EVASION = 10
    ARMOR = 10

    def compute(self, summary: AccountSummary) -> PlayerStats:
        return PlayerStats(
            hp=self.HP,
            damage=self.DAMAGE,
            attack_speed=self.ATTACK_SPEED,
            move_speed=self.MOVE_SPEED,
            crit=self.CRIT,
            evasion=self.EVASION,
            armor=self.ARMOR,
        )


class ProfileComposer:
    def __init__(self, strategy: Optional[StatsStrategy] = None):
        self.strategy = strategy or BaselineStatsStrategy()

    def compose(self, summary: AccountSummary, kingdom: str) -> PlayerProfile:
        stats = self.strategy.compute(summary)
        return PlayerProfile(**stats.model_dump(), kingdom=kingdom)
