"""
ValidationEngine — bounds and horizon repair for analyst output.

Rules, applied in order and independent of the narrative text:

    1. score        clamp to [1, 5], default 3
    2. unit scale   price <= ref * 0.01         -> price * 1000
    3. floor        price <  ref * 0.5          -> ref * (1 + U(bias_range))
    4. ceiling      price >  ref * ceiling      -> ref * cap_multiplier
    5. date         missing / past / too soon   -> today + horizon + U{0..3} months
    6. lists        risks, sources default to empty

Repairs are not errors. Each one is logged and listed on the
CorrectedOutput so it stays observable after the fact.

The engine reads "today" from an injected clock. Random draws come from
the ``rng`` passed to ``validate``; the round orchestrator passes each
session its own ``session_rng(session_id)``, so one session's repairs never
depend on what other sessions ran. With a fixed seed and clock a session's
repairs are deterministic.
"""

from __future__ import annotations

import logging
import math
import random
from datetime import date
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict

from agents.base import AnalystIdentity, AnalystProfile, RawOutput, get_profile
from agents.target_dates import add_months, month_label, parse_target_date
from orchestrator.state import Target

logger = logging.getLogger(__name__)

DEFAULT_SCORE = 3
MIN_SCORE = 1
MAX_SCORE = 5
UNIT_SCALE_THRESHOLD = 0.01
UNIT_SCALE_FACTOR = 1000
FLOOR_RATIO = 0.5
DATE_SPREAD_MONTHS = 3


class CorrectedOutput(BaseModel):
    """Raw output after every rule has been applied. The only shape allowed into a Statement."""

    model_config = ConfigDict(frozen=True)

    analyst: AnalystIdentity
    text: str
    score: int
    target: Target
    risks: tuple[str, ...] = ()
    sources: tuple[str, ...] = ()
    repairs: tuple[str, ...] = ()


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ValidationEngine:
    """Deterministic (given its random source and clock) repair of raw analyst output."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        clock: Callable[[], date] = date.today,
    ):
        self.seed = seed
        self.rng = rng if rng is not None else random.Random(seed)
        self.clock = clock

    def session_rng(self, session_id: str) -> random.Random:
        """Random source private to one session, derived from the seed and the session id."""
        if self.seed is None:
            return random.Random()
        return random.Random(f"{self.seed}-{session_id}")

    # -- individual rules ---------------------------------------------------

    def clamp_score(self, score: float | None) -> int:
        if score is None:
            return DEFAULT_SCORE
        return max(MIN_SCORE, min(MAX_SCORE, round_half_up(score)))

    def synthetic_price(
        self,
        profile: AnalystProfile,
        reference_price: float,
        rng: Optional[random.Random] = None,
    ) -> float:
        low, high = profile.bias_range
        return round(reference_price * (1 + (rng or self.rng).uniform(low, high)), 2)

    def repair_price(
        self,
        price: float | None,
        profile: AnalystProfile,
        reference_price: float,
        repairs: list[str],
        rng: Optional[random.Random] = None,
    ) -> float:
        tag = profile.identity.value

        if price is None or price <= 0:
            repaired = self.synthetic_price(profile, reference_price, rng)
            logger.info(f"[{tag}] missing target price, substituted {repaired:,.2f}")
            repairs.append("price_missing")
            return repaired

        if price <= reference_price * UNIT_SCALE_THRESHOLD:
            scaled = price * UNIT_SCALE_FACTOR
            logger.info(f"[{tag}] target {price:,.2f} looks mis-scaled, using {scaled:,.2f}")
            repairs.append("price_unit_scaled")
            price = scaled

        if price < reference_price * FLOOR_RATIO:
            repaired = self.synthetic_price(profile, reference_price, rng)
            logger.info(
                f"[{tag}] target {price:,.2f} below {FLOOR_RATIO:.0%} of reference "
                f"{reference_price:,.2f}, substituted {repaired:,.2f}"
            )
            repairs.append("price_below_floor")
            price = repaired

        if price > reference_price * profile.ceiling_ratio:
            capped = round(reference_price * profile.cap_multiplier, 2)
            logger.info(
                f"[{tag}] target {price:,.2f} above {profile.ceiling_ratio:g}x reference, capped to {capped:,.2f}"
            )
            repairs.append("price_capped")
            price = capped

        return price

    def repair_date(
        self,
        label: str | None,
        profile: AnalystProfile,
        today: date,
        repairs: list[str],
        rng: Optional[random.Random] = None,
    ) -> tuple[date, str]:
        minimum = add_months(today, profile.min_horizon_months)
        parsed = parse_target_date(label)

        reason = None
        if not label:
            reason = "date_missing"
        elif parsed is None:
            reason = "date_unparseable"
        elif parsed <= today:
            reason = "date_in_past"
        elif parsed < minimum:
            reason = "date_inside_horizon"

        if reason is None:
            return parsed, label

        months = profile.min_horizon_months + (rng or self.rng).randint(0, DATE_SPREAD_MONTHS)
        repaired = add_months(today, months)
        logger.info(
            f"[{profile.identity.value}] target date {label!r} rejected ({reason}), using {repaired.isoformat()}"
        )
        repairs.append(reason)
        return repaired, month_label(repaired)

    # -- entry point --------------------------------------------------------

    def validate(
        self,
        raw: RawOutput,
        analyst: AnalystIdentity,
        reference_price: float,
        today: Optional[date] = None,
        rng: Optional[random.Random] = None,
    ) -> CorrectedOutput:
        if reference_price <= 0:
            raise ValueError(f"reference price must be positive, got {reference_price}")

        profile = get_profile(analyst)
        today = today or self.clock()
        repairs: list[str] = []

        score = self.clamp_score(raw.score)
        if raw.score is None:
            repairs.append("score_missing")
        elif score != raw.score:
            repairs.append("score_clamped")

        price = self.repair_price(raw.target_price, profile, reference_price, repairs, rng)
        target_date, label = self.repair_date(raw.target_date, profile, today, repairs, rng)

        target = Target(
            price=price,
            target_date=target_date,
            date_label=label,
            rationale=raw.rationale or "",
            confidence=score,
        )

        return CorrectedOutput(
            analyst=profile.identity,
            text=raw.text,
            score=score,
            target=target,
            risks=tuple(raw.risks),
            sources=tuple(raw.sources),
            repairs=tuple(repairs),
        )
