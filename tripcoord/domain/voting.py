"""Voting status for trips in the voting stage.

Pure domain functions. No DB access, fully deterministic.
"""

from dataclasses import dataclass, field
from datetime import date

from tripcoord.domain.status import TripStatus, effective_status


@dataclass
class VoteOption:
    option_key: str
    label: str
    start_date: str
    end_date: str
    votes: int = 0
    voter_names: list[str] = field(default_factory=list)
    index: int = 0


@dataclass
class VotingStatus:
    stage: TripStatus
    is_voting_stage: bool = False
    total_travelers: int = 0
    voted_count: int = 0
    remaining_count: int = 0
    has_current_user_voted: bool = False
    leading_option: VoteOption | None = None
    leading_votes: int = 0
    is_tie: bool = False
    ready_to_lock: bool = False
    ready_to_lock_reason: str | None = None
    options: list[VoteOption] = field(default_factory=list)


def option_key(start_date: str, end_date: str) -> str:
    """Key a vote's ``optionKey`` must match: ``YYYY-MM-DD_YYYY-MM-DD``."""
    return f"{start_date}_{end_date}"


def _short_date(value: str) -> str:
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        return value
    return f"{parsed.strftime('%b')} {parsed.day}"


def format_option_label(start_date: str, end_date: str) -> str:
    return f"{_short_date(start_date)}–{_short_date(end_date)}"


def _first_name(vote: dict) -> str | None:
    name = vote.get("voterName") or vote.get("userName")
    if not name:
        return None
    return name.split(" ")[0]


def build_vote_options(trip: dict) -> dict[str, VoteOption]:
    """Voting options keyed by option key, in the trip's listed order."""
    raw_options = trip.get("promisingWindows") or trip.get("consensusOptions") or []
    options: dict[str, VoteOption] = {}
    for idx, raw in enumerate(raw_options):
        start = raw.get("startDate") or raw.get("startDateISO")
        end = raw.get("endDate") or raw.get("endDateISO")
        if not start or not end:
            continue
        key = option_key(start, end)
        options[key] = VoteOption(
            option_key=key,
            label=raw.get("name") or raw.get("label") or format_option_label(start, end),
            start_date=start,
            end_date=end,
            index=idx,
        )
    return options


def get_voting_status(
    trip: dict,
    votes: list[dict],
    travelers: list,
    current_user_id: str | None,
) -> VotingStatus:
    """Tally votes for a trip in the voting stage.

    Args:
        trip: Trip document carrying ``promisingWindows`` or ``consensusOptions``
        votes: Vote records for the trip
        travelers: Active travelers (only the count is used)
        current_user_id: Viewing user

    Returns:
        VotingStatus. Trips outside the voting stage get an empty status.

    Ready to lock when:
        - more than half the travelers voted and one option leads outright
        - everyone voted and one option leads outright
        - everyone voted and options tie (the leader breaks the tie)
    """
    stage = effective_status(trip)
    result = VotingStatus(stage=stage, total_travelers=len(travelers))
    if stage != TripStatus.VOTING:
        return result

    result.is_voting_stage = True
    voted_user_ids = {v.get("userId") for v in votes if v.get("userId")}
    result.voted_count = len(voted_user_ids)
    result.remaining_count = result.total_travelers - result.voted_count
    result.has_current_user_voted = current_user_id in voted_user_ids

    options = build_vote_options(trip)
    if not options:
        return result

    for vote in votes:
        option = options.get(vote.get("optionKey"))
        if option is None:
            continue
        option.votes += 1
        first_name = _first_name(vote)
        if first_name and first_name not in option.voter_names:
            option.voter_names.append(first_name)

    result.options = sorted(options.values(), key=lambda o: (-o.votes, o.index))

    top = result.options[0]
    if top.votes > 0:
        result.leading_option = top
        result.leading_votes = top.votes
        result.is_tie = len(result.options) > 1 and result.options[1].votes == top.votes

    has_leader = result.leading_option is not None
    all_voted = result.voted_count == result.total_travelers
    majority_voted = result.voted_count > result.total_travelers / 2

    if majority_voted and has_leader and not result.is_tie:
        result.ready_to_lock = True
        result.ready_to_lock_reason = f"{result.voted_count}/{result.total_travelers} voted, clear leader"
    elif all_voted and has_leader and not result.is_tie:
        result.ready_to_lock = True
        result.ready_to_lock_reason = "All votes in"
    elif all_voted and result.is_tie:
        result.ready_to_lock = True
        result.ready_to_lock_reason = "All votes in (tie - leader decides)"

    return result
