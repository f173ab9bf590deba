"""
Room rule configuration and validation.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class RuleConfig(BaseModel):
    """Configuration for timings, thresholds and limits shared by every room."""

    countdown_seconds: int = Field(
        default=30,
        ge=1,
        le=600,
        description="Lobby countdown before a game starts"
    )
    reconnect_grace_seconds: int = Field(
        default=60,
        ge=1,
        le=3600,
        description="Seconds a disconnected player's seat is reserved"
    )
    win_points: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Trick-card score that wins the game"
    )
    trick_hand_size: int = Field(default=10, ge=1, le=20)
    shedding_hand_size: int = Field(default=7, ge=1, le=20)
    round_advance_delay: float = Field(
        default=4,
        ge=0,
        description="Pause between a judge pick and the next round"
    )
    trick_reset_delay: float = Field(default=10, ge=0)
    shedding_reset_delay: float = Field(default=8, ge=0)
    blank_card_chance: float = Field(
        default=0.1,
        ge=0,
        le=1,
        description="Chance that a fill-in draw yields the blank card"
    )
    max_name_length: int = Field(default=15, ge=1, le=64)
    max_free_text_length: int = Field(default=140, ge=1, le=1000)
    max_chat_length: int = Field(default=200, ge=1, le=2000)
    low_card_penalty: int = Field(default=2, ge=0, le=10)
    admin_password: str = Field(default="change-me", min_length=1)
    keepalive_seconds: int = Field(default=300, ge=1)

    @field_validator('admin_password')
    @classmethod
    def validate_admin_password(cls, v):
        """Reject passwords that are only whitespace."""
        if not v.strip():
            raise ValueError('admin_password must not be blank')
        return v


_ENV_PREFIX = "PARTY_"


def load_rules_from_env(environ: Optional[dict] = None) -> RuleConfig:
    """
    Build a RuleConfig from PARTY_* environment variables.

    Unset variables keep their defaults; values are validated by pydantic.
    """
    environ = os.environ if environ is None else environ
    overrides = {}
    for name in RuleConfig.model_fields:
        raw = environ.get(f"{_ENV_PREFIX}{name.upper()}")
        if raw is not None:
            overrides[name] = raw
    return RuleConfig(**overrides)


default_rules = RuleConfig()
