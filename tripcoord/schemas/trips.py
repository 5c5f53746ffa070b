"""Pydantic schemas for per-trip responses."""

from pydantic import BaseModel, Field


class ValidationResponse(BaseModel):
    ok: bool
    status: int = 200
    code: str | None = None
    message: str | None = None


class WindowTallyResponse(BaseModel):
    window: dict
    count: int


class ReadinessStatsResponse(BaseModel):
    total_travelers: int
    responder_count: int
    leader_count: int
    threshold_needed: int
    window_count: int


class ProposalReadinessResponse(BaseModel):
    proposal_ready: bool
    reason: str = Field(..., description="no_windows, threshold_met or threshold_not_met")
    leading_window: dict | None = None
    leader_count: int = 0
    leader_user_ids: list[str] = Field(default_factory=list)
    runner_up: WindowTallyResponse | None = None
    is_tie: bool = False
    stats: ReadinessStatsResponse
    can_propose: bool = False
    leader_override: bool = False


class VoteOptionResponse(BaseModel):
    option_key: str
    label: str
    start_date: str
    end_date: str
    votes: int = 0
    voter_names: list[str] = Field(default_factory=list)


class VotingStatusResponse(BaseModel):
    stage: str
    is_voting_stage: bool
    total_travelers: int
    voted_count: int
    remaining_count: int
    has_current_user_voted: bool
    leading_option: VoteOptionResponse | None = None
    leading_votes: int = 0
    is_tie: bool = False
    ready_to_lock: bool = False
    ready_to_lock_reason: str | None = None
    options: list[VoteOptionResponse] = Field(default_factory=list)
