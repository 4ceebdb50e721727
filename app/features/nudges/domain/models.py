"""
Domain models for the nudge decision engine.

Threads and focus come from the caller; LearningState, Decision and
NudgeRecord are produced by the engine. Everything the engine returns is
frozen so a decision can always be reproduced from a state snapshot.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.utils.time_helpers import to_utc

InteractionType = Literal["Coffee Chat", "Referral Intro", "Recruiter Email", "Post-Interview"]

TimingState = Literal["TOO_EARLY", "OPTIMAL", "LATE"]

NudgeType = Literal["FOLLOW_UP", "DO_NOTHING_YET", "SILENT"]

SharedConnection = Literal[
    "Same school",
    "Same student org",
    "Same hometown/country",
    "Friend-of-friend intro",
    "Same previous company",
    "None",
]

NudgeOutcome = Literal["accepted", "ignored", "dismissed"]

FeedbackKind = Literal[
    "follow_up",
    "not_now",
    "too_early",
    "dismiss",
    "suppress",
    "still_relevant",
]

FitMode = Literal["ai", "rules"]

SeniorityBucket = Literal["student", "analyst", "associate", "manager_plus", "unknown"]


class Thread(BaseModel):
    """A tracked networking contact and the state of the conversation with them."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    company: str = ""
    role_title: str = ""
    industry: str = ""
    interaction_type: InteractionType
    last_interaction_date: datetime
    followup_already_sent: bool = False
    prior_engagement: bool = False
    typical_response_latency_days: int = Field(default=0, ge=0)
    shared_connection: SharedConnection = "None"
    nudged_already: bool = False
    ignored_nudges_count: int = Field(default=0, ge=0)
    suppress_thread: bool | None = None
    override_fit: bool | None = None

    @field_validator("last_interaction_date")
    @classmethod
    def _normalize_timezone(cls, value: datetime) -> datetime:
        return to_utc(value)


class ThreadOverride(BaseModel):
    """Sparse per-thread delta written by feedback. None means "not set"."""

    model_config = ConfigDict(frozen=True)

    followup_already_sent: bool | None = None
    nudged_already: bool | None = None
    ignored_nudges_count: int | None = Field(default=None, ge=0)
    suppress_thread: bool | None = None
    override_fit: bool | None = None
    thread_cooldown_end: datetime | None = None

    @field_validator("thread_cooldown_end")
    @classmethod
    def _normalize_timezone(cls, value: datetime | None) -> datetime | None:
        return to_utc(value) if value is not None else None


class UserFocus(BaseModel):
    """The user's recruiting target. Read-only for the engine."""

    model_config = ConfigDict(frozen=True)

    target_industry: str = "Investment Banking"
    target_role: str = "TMT"
    recruiting_stage: str = "Networking"


class NudgeHistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    thread_id: str
    date: datetime

    @field_validator("date")
    @classmethod
    def _normalize_timezone(cls, value: datetime) -> datetime:
        return to_utc(value)


class NudgeRecord(BaseModel):
    """Audit entry for a nudge and what the user did with it."""

    model_config = ConfigDict(frozen=True)

    thread_id: str
    thread_name: str
    date: datetime
    confidence_score: float
    outcome: NudgeOutcome | None = None


class FrozenDict(dict):
    """dict that refuses in-place changes. Still a dict for pydantic and JSON."""

    def _readonly(self, *args, **kwargs):
        raise TypeError(f"{type(self).__name__} is read-only")

    __setitem__ = _readonly
    __delitem__ = _readonly
    __ior__ = _readonly
    clear = _readonly
    pop = _readonly
    popitem = _readonly
    setdefault = _readonly
    update = _readonly

    def __reduce__(self):
        return type(self), (dict(self),)


class LearningState(BaseModel):
    """
    Adaptive per-user state fed back into every decision.

    Sequences are tuples and mappings are FrozenDicts so a snapshot cannot be
    changed in place; transitions in pipeline.learning build a new instance instead.
    """

    model_config = ConfigDict(frozen=True)

    user_threshold: float = Field(default=0.75, ge=0.0, le=1.0)
    window_shifts: dict[InteractionType, int] = Field(default_factory=FrozenDict)
    thread_overrides: dict[str, ThreadOverride] = Field(default_factory=FrozenDict)
    nudge_history: tuple[NudgeHistoryEntry, ...] = ()
    suppressed_threads: tuple[str, ...] = ()
    nudge_records: tuple[NudgeRecord, ...] = ()

    @field_validator("window_shifts", "thread_overrides")
    @classmethod
    def _freeze_mapping(cls, value: dict) -> FrozenDict:
        return FrozenDict(value)

    @field_validator("suppressed_threads")
    @classmethod
    def _dedupe_suppressed(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        # Set semantics with a stable order so the blob serializes as an ordered list
        return tuple(dict.fromkeys(value))

    def window_shift(self, interaction_type: InteractionType) -> int:
        return self.window_shifts.get(interaction_type, 0)

    def override_for(self, thread_id: str) -> ThreadOverride | None:
        return self.thread_overrides.get(thread_id)

    def is_suppressed(self, thread_id: str) -> bool:
        return thread_id in self.suppressed_threads


class FitAINotes(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    normalized_industry: str
    normalized_role: str


class FitAIOutput(BaseModel):
    """Validated Fit Normalizer payload. See enrichment.schemas for the strict parser."""

    model_config = ConfigDict(frozen=True)

    industry_match: Literal[0, 1, "unknown"]
    role_match: Literal[0, 1, "unknown"]
    seniority_bucket: SeniorityBucket
    notes: FitAINotes
    confidence: float = Field(..., ge=0.0, le=1.0)
    explanation: str


class PolishOutput(BaseModel):
    """Validated Tone Polisher payload."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)


class FitResult(BaseModel):
    """Fit score plus the provenance the UI must disclose."""

    model_config = ConfigDict(frozen=True)

    score: float
    mode: FitMode
    explanation: str | None = None
    ai_output: FitAIOutput | None = None

    @property
    def ai_used(self) -> bool:
        return self.mode == "ai"


class Decision(BaseModel):
    """One evaluation of one thread. Recomputed every time, never persisted."""

    model_config = ConfigDict(frozen=True)

    should_nudge: bool
    nudge_type: NudgeType
    reasons: list[str] = Field(default_factory=list, max_length=4)
    inputs_used: list[str] = Field(default_factory=list)
    confidence_score: float
    fit_score: float
    timing_state: TimingState
    days_since: int
    fit_mode: FitMode | None = None
    fit_explanation: str | None = None
