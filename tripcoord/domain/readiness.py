"""Proposal readiness for the date-windows funnel.

Decides when the leading date window has enough support for the leader to
propose it.

Thresholds:
    - Small groups (<= 10 travelers): majority of all travelers
    - Large groups (> 10 travelers): majority of responders, never below 5

Pure domain logic with no external dependencies.
"""

import math
from dataclasses import dataclass, field, replace

SMALL_GROUP_MAX_TRAVELERS = 10
LARGE_GROUP_MIN_SUPPORT = 5


@dataclass(frozen=True)
class WindowTally:
    """Support count for one date window."""

    window: dict
    count: int
    user_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReadinessStats:
    total_travelers: int
    responder_count: int
    leader_count: int
    threshold_needed: int
    window_count: int


@dataclass(frozen=True)
class ProposalReadiness:
    proposal_ready: bool
    reason: str
    leading_window: dict | None
    leader_count: int
    leader_user_ids: list[str]
    runner_up: WindowTally | None
    is_tie: bool
    stats: ReadinessStats
    can_propose: bool = False
    leader_override: bool = False


def compute_threshold(total_travelers: int, responder_count: int) -> int:
    """Support needed on the leading window before it can be proposed."""
    if total_travelers <= SMALL_GROUP_MAX_TRAVELERS:
        return total_travelers // 2 + 1
    return max(LARGE_GROUP_MIN_SUPPORT, math.ceil(responder_count / 2))


def tally_window_support(windows: list[dict], supports: list[dict]) -> list[WindowTally]:
    """Count supports per window, most supported first.

    Ties go to the window suggested first (earliest ``createdAt``).
    """
    tallies = []
    for window in windows:
        user_ids = [s.get("userId") for s in supports if s.get("windowId") == window.get("id")]
        tallies.append(WindowTally(window=window, count=len(user_ids), user_ids=user_ids))

    return sorted(tallies, key=lambda t: (-t.count, t.window.get("createdAt") or ""))


def compute_proposal_ready(
    trip: dict,
    travelers: list,
    windows: list[dict],
    supports: list[dict],
) -> ProposalReadiness:
    """Compute whether the trip is ready for the leader to propose dates.

    Pure function -- deterministic, no side effects.

    Args:
        trip: Trip document
        travelers: Active travelers (any items; only the count is used)
        windows: Date window documents for the trip
        supports: Window support documents for the trip; duplicates count twice

    Returns:
        ProposalReadiness. With no windows, reason is "no_windows" and the
        threshold stats are still filled in for display.
    """
    total_travelers = len(travelers)
    responder_count = len({s.get("userId") for s in supports})
    threshold = compute_threshold(total_travelers, responder_count)

    if not windows:
        return ProposalReadiness(
            proposal_ready=False,
            reason="no_windows",
            leading_window=None,
            leader_count=0,
            leader_user_ids=[],
            runner_up=None,
            is_tie=False,
            stats=ReadinessStats(
                total_travelers=total_travelers,
                responder_count=responder_count,
                leader_count=0,
                threshold_needed=threshold,
                window_count=0,
            ),
        )

    tallies = tally_window_support(windows, supports)
    leader = tallies[0]
    runner_up = tallies[1] if len(tallies) > 1 else None
    ready = leader.count >= threshold

    return ProposalReadiness(
        proposal_ready=ready,
        reason="threshold_met" if ready else "threshold_not_met",
        leading_window=leader.window,
        leader_count=leader.count,
        leader_user_ids=leader.user_ids,
        runner_up=runner_up,
        is_tie=runner_up is not None and leader.count > 0 and runner_up.count == leader.count,
        stats=ReadinessStats(
            total_travelers=total_travelers,
            responder_count=responder_count,
            leader_count=leader.count,
            threshold_needed=threshold,
            window_count=len(windows),
        ),
        can_propose=ready,
    )


def can_leader_propose(
    trip: dict,
    travelers: list,
    windows: list[dict],
    supports: list[dict],
    leader_override: bool = False,
) -> ProposalReadiness:
    """Readiness plus the leader's right to force a proposal regardless of support."""
    result = compute_proposal_ready(trip, travelers, windows, supports)
    return replace(
        result,
        can_propose=result.proposal_ready or leader_override,
        leader_override=leader_override,
    )
