from __future__ import annotations

from dataclasses import dataclass

COMPLETION_WEIGHT = 40.0
SAVE_WEIGHT = 30.0
SHARE_WEIGHT = 20.0
CLICK_WEIGHT = 10.0
SKIP_PENALTY = 20.0

MIN_SCORE = 0.0
MAX_SCORE = 100.0


@dataclass(frozen=True)
class EngagementCounts:
    views: int = 0
    completions: int = 0
    saves: int = 0
    shares: int = 0
    clicks: int = 0
    skips: int = 0

    def score(self) -> float:
        return engagement_score(
            views=self.views,
            completions=self.completions,
            saves=self.saves,
            shares=self.shares,
            clicks=self.clicks,
            skips=self.skips,
        )


def engagement_score(
    *,
    views: int,
    completions: int,
    saves: int,
    shares: int,
    clicks: int,
    skips: int,
) -> float:
    """Bounded [0, 100] ranking score used to order the discovery feed.

    Every signal is normalised by views. Completions weigh most; skips are the
    only negative signal and the clamp keeps them from pushing below zero.
    """
    if views <= 0:
        return 0.0
    score = (
        COMPLETION_WEIGHT * (completions / views)
        + SAVE_WEIGHT * (saves / views)
        + SHARE_WEIGHT * (shares / views)
        + CLICK_WEIGHT * (clicks / views)
        - SKIP_PENALTY * (skips / views)
    )
    return max(MIN_SCORE, min(MAX_SCORE, score))
