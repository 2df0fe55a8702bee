"""Power-up catalog and purchase resolution.

Buying a power-up always spends player credits first, then resolves its
reward according to ``reward_type``:

* ``ai_credits``  adds to the AI credit balance,
* ``xp_boost``    inserts a timed XP multiplier,
* ``protection``  inserts a timed streak shield,
* ``cosmetic``    permanently unlocks an avatar item,
* ``random``      opens a mystery chest (see ``roll_chest``).
"""
from __future__ import annotations

import logging
import random
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models.active_powerup import ActivePowerUp
from app.services.activity import log_activity
from app.services.gamification.levels import grant_xp
from app.services.gamification.rewards import get_active_powerups
from app.services.gamification.windows import utc_now
from app.services.notifications.hooks import notify_level_up
from app.services.user_service import ensure_player_profile

logger = logging.getLogger(__name__)

REWARD_AI_CREDITS = "ai_credits"
REWARD_XP_BOOST = "xp_boost"
REWARD_PROTECTION = "protection"
REWARD_COSMETIC = "cosmetic"
REWARD_RANDOM = "random"

TIMED_REWARDS = {REWARD_XP_BOOST, REWARD_PROTECTION}


@dataclass(frozen=True)
class PowerUpDefinition:
    key: str
    name: str
    description: str
    cost: int
    reward_type: str
    reward_value: Optional[int | str] = None
    multiplier: float = 1.0
    duration_minutes: Optional[int] = None
    rarity: str = "common"
    icon: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


POWERUP_DEFINITIONS: Dict[str, PowerUpDefinition] = {
    definition.key: definition
    for definition in (
        PowerUpDefinition(
            key="ai_credits_small",
            name="AI Credit Pack",
            description="+5 AI assistant credits",
            cost=30,
            reward_type=REWARD_AI_CREDITS,
            reward_value=5,
            icon="🤖",
        ),
        PowerUpDefinition(
            key="ai_credits_large",
            name="AI Credit Crate",
            description="+20 AI assistant credits",
            cost=100,
            reward_type=REWARD_AI_CREDITS,
            reward_value=20,
            rarity="rare",
            icon="🧠",
        ),
        PowerUpDefinition(
            key="xp_boost_2x",
            name="XP Boost x2",
            description="Double XP earned for 1 hour",
            cost=50,
            reward_type=REWARD_XP_BOOST,
            multiplier=2.0,
            duration_minutes=60,
            icon="⚡",
        ),
        PowerUpDefinition(
            key="xp_boost_3x",
            name="XP Boost x3",
            description="Triple XP earned for 30 minutes",
            cost=75,
            reward_type=REWARD_XP_BOOST,
            multiplier=3.0,
            duration_minutes=30,
            rarity="rare",
            icon="🚀",
        ),
        PowerUpDefinition(
            key="streak_shield",
            name="Streak Shield",
            description="Protects habit streaks for 24 hours",
            cost=100,
            reward_type=REWARD_PROTECTION,
            duration_minutes=24 * 60,
            icon="🛡️",
        ),
        PowerUpDefinition(
            key="streak_mega_shield",
            name="Mega Shield",
            description="Protects habit streaks for 3 days",
            cost=250,
            reward_type=REWARD_PROTECTION,
            duration_minutes=3 * 24 * 60,
            rarity="epic",
            icon="🔰",
        ),
        PowerUpDefinition(
            key="mystery_chest",
            name="Mystery Chest",
            description="A random reward: XP, credits or AI credits",
            cost=60,
            reward_type=REWARD_RANDOM,
            rarity="rare",
            icon="🎁",
        ),
        PowerUpDefinition(
            key="helmet_neon",
            name="Neon Helmet",
            description="Glowing helmet for your avatar",
            cost=150,
            reward_type=REWARD_COSMETIC,
            reward_value="helmet_neon",
            rarity="rare",
            icon="⛑️",
        ),
        PowerUpDefinition(
            key="helmet_samurai",
            name="Samurai Helmet",
            description="Legendary warrior helmet",
            cost=300,
            reward_type=REWARD_COSMETIC,
            reward_value="helmet_samurai",
            rarity="epic",
            icon="🏯",
        ),
        PowerUpDefinition(
            key="armor_chrome",
            name="Chrome Armor",
            description="Polished chrome plating",
            cost=200,
            reward_type=REWARD_COSMETIC,
            reward_value="armor_chrome",
            rarity="rare",
            icon="🦾",
        ),
        PowerUpDefinition(
            key="armor_plasma",
            name="Plasma Armor",
            description="Armor wrapped in living plasma",
            cost=400,
            reward_type=REWARD_COSMETIC,
            reward_value="armor_plasma",
            rarity="legendary",
            icon="🔥",
        ),
    )
}

CHEST_RARITY_WEIGHTS: Tuple[Tuple[str, int], ...] = (
    ("common", 60),
    ("rare", 25),
    ("epic", 12),
    ("legendary", 3),
)


class PowerUpError(Exception):
    """Base class for purchase failures."""


class UnknownPowerUpError(PowerUpError):
    pass


class InsufficientCreditsError(PowerUpError):
    def __init__(self, required: int, available: int):
        super().__init__(f"Not enough credits: {required} required, {available} available")
        self.required = required
        self.available = available


class PowerUpUnavailableError(PowerUpError):
    """Raised when the same timed power-up is running or a cosmetic is owned."""


@dataclass
class ChestReward:
    rarity: str
    xp: int = 0
    credits: int = 0
    ai_credits: int = 0


@dataclass
class PowerUpResolution:
    powerup_type: str
    reward_type: str
    credits_spent: int
    credits_balance: int = 0
    ai_credits_balance: Optional[int] = None
    ai_credits_granted: int = 0
    credits_granted: int = 0
    xp_granted: int = 0
    level: Optional[int] = None
    leveled_up: bool = False
    unlocked_item: Optional[str] = None
    multiplier: Optional[float] = None
    expires_at: Optional[datetime] = None
    chest: Optional[ChestReward] = None
    details: Dict[str, object] = field(default_factory=dict)


def roll_chest(rng: random.Random) -> ChestReward:
    """Pick a rarity by weight, then the reward for that tier."""
    rarities = [name for name, _ in CHEST_RARITY_WEIGHTS]
    weights = [weight for _, weight in CHEST_RARITY_WEIGHTS]
    rarity = rng.choices(rarities, weights=weights, k=1)[0]

    if rarity == "common":
        return ChestReward(rarity=rarity, xp=rng.randint(50, 100))
    if rarity == "rare":
        return ChestReward(rarity=rarity, credits=rng.randint(20, 50))
    if rarity == "epic":
        return ChestReward(rarity=rarity, ai_credits=5)
    return ChestReward(rarity=rarity, xp=300, credits=100)


def list_catalog() -> List[PowerUpDefinition]:
    return sorted(POWERUP_DEFINITIONS.values(), key=lambda d: (d.reward_type, d.cost))


def activate_powerup(
    db: Session,
    user_id: UUID,
    powerup_type: str,
    *,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
    request_id: Optional[str] = None,
) -> PowerUpResolution:
    """Spend credits on a power-up and apply its reward.

    Staged in the session; the caller commits.
    """
    definition = POWERUP_DEFINITIONS.get(powerup_type)
    if definition is None:
        raise UnknownPowerUpError(f"Unknown power-up: {powerup_type}")

    current = utc_now(now)
    bundle = ensure_player_profile(db, user_id)
    profile = bundle.profile

    if definition.reward_type in TIMED_REWARDS:
        running = [p for p in get_active_powerups(db, user_id, current) if p.powerup_type == powerup_type]
        if running:
            raise PowerUpUnavailableError(f"{definition.name} is already active")
    if definition.reward_type == REWARD_COSMETIC and definition.reward_value in (profile.unlocked_items or []):
        raise PowerUpUnavailableError(f"{definition.name} is already unlocked")

    available = profile.credits or 0
    if available < definition.cost:
        raise InsufficientCreditsError(definition.cost, available)

    profile.credits = available - definition.cost
    resolution = PowerUpResolution(
        powerup_type=powerup_type,
        reward_type=definition.reward_type,
        credits_spent=definition.cost,
    )

    if definition.reward_type == REWARD_AI_CREDITS:
        granted = int(definition.reward_value or 0)
        bundle.ai_credits.credits = (bundle.ai_credits.credits or 0) + granted
        resolution.ai_credits_granted = granted
    elif definition.reward_type in TIMED_REWARDS:
        expires_at = current + timedelta(minutes=definition.duration_minutes or 0)
        db.add(
            ActivePowerUp(
                user_id=user_id,
                powerup_type=powerup_type,
                multiplier=definition.multiplier,
                expires_at=expires_at,
            )
        )
        resolution.multiplier = definition.multiplier
        resolution.expires_at = expires_at
    elif definition.reward_type == REWARD_COSMETIC:
        item = str(definition.reward_value)
        profile.unlocked_items = [*(profile.unlocked_items or []), item]
        resolution.unlocked_item = item
    elif definition.reward_type == REWARD_RANDOM:
        chest = roll_chest(rng or random.Random())
        resolution.chest = chest
        if chest.credits:
            profile.credits += chest.credits
            resolution.credits_granted = chest.credits
        if chest.ai_credits:
            bundle.ai_credits.credits = (bundle.ai_credits.credits or 0) + chest.ai_credits
            resolution.ai_credits_granted = chest.ai_credits
        if chest.xp:
            award = grant_xp(profile, chest.xp)
            resolution.xp_granted = award.xp_awarded
            resolution.level = award.level
            resolution.leveled_up = award.leveled_up
            if award.leveled_up:
                notify_level_up(db, user_id, award, request_id)
    else:  # pragma: no cover - catalog is static
        raise UnknownPowerUpError(f"Unsupported reward type: {definition.reward_type}")

    resolution.credits_balance = profile.credits
    resolution.ai_credits_balance = bundle.ai_credits.credits
    resolution.level = resolution.level or profile.level

    log_activity(
        db,
        user_id,
        "powerup_activated",
        {
            "powerup_type": powerup_type,
            "reward_type": definition.reward_type,
            "cost": definition.cost,
            "expires_at": resolution.expires_at.isoformat() if resolution.expires_at else None,
            "unlocked_item": resolution.unlocked_item,
            "chest": asdict(resolution.chest) if resolution.chest else None,
        },
        reason=f"Purchased {definition.name}",
        request_id=request_id,
    )
    logger.info("User %s activated %s (%s)", user_id, powerup_type, definition.reward_type)
    return resolution
