"""Progress record models stored inside a user document.

Documents use camelCase keys; the Python attributes are snake_case.
"""

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    model_validator,
)
from pydantic.alias_generators import to_camel

_STORED = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
)

_LOGS = ("contests", "submissions")

# First-revision submission keys -> current keys
_LEGACY_SUBMISSION_KEYS = {
    "submissionDate": "date",
    "submissionLanguage": "language",
    "submissionStatus": "status",
}


class SubmissionResult(BaseModel):
    """One judged submission snapshot."""

    model_config = ConfigDict(**_STORED, frozen=True)

    problem_url: StrictStr = ""
    problem_name: StrictStr = ""
    date: StrictStr = ""
    language: StrictStr = ""
    status: StrictStr = ""
    code_url: StrictStr = ""

    @model_validator(mode="before")
    @classmethod
    def _upgrade_legacy(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if not any(key in data for key in _LEGACY_SUBMISSION_KEYS):
            return data
        upgraded = dict(data)
        for old, new in _LEGACY_SUBMISSION_KEYS.items():
            if old in upgraded:
                upgraded.setdefault(new, upgraded.pop(old))
        return upgraded

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ContestResult(BaseModel):
    """A user's result in a single contest.

    ``rank`` and ``rating`` are floats and ``contest_id`` is kept as the
    platform's string identifier. Documents written with the first schema
    revision (``contestName``, ``oldRating``/``newRating`` and an integer
    ``contestID``) are upgraded on load.
    """

    model_config = ConfigDict(**_STORED, frozen=True)

    name: StrictStr = ""
    date: StrictStr = ""
    rank: StrictFloat = 0.0
    rating: StrictFloat = 0.0
    solved: StrictInt = 0
    contest_id: StrictStr = ""

    @model_validator(mode="before")
    @classmethod
    def _upgrade_legacy(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if "contestName" not in data and "contestID" not in data:
            return data
        upgraded = dict(data)
        if "contestName" in upgraded:
            upgraded.setdefault("name", upgraded.pop("contestName"))
        if "newRating" in upgraded:
            upgraded.setdefault("rating", upgraded.pop("newRating"))
        upgraded.pop("oldRating", None)
        if "contestID" in upgraded:
            legacy_id = upgraded.pop("contestID")
            if isinstance(legacy_id, int) and not isinstance(legacy_id, bool):
                legacy_id = str(legacy_id)
            upgraded.setdefault("contestId", legacy_id)
        return upgraded

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class PlatformProgress(BaseModel):
    """Per-platform bundle: handle, counters and the two history logs."""

    model_config = _STORED

    handle: StrictStr = ""
    total_solved: StrictInt = 0
    ranking: StrictFloat = 0.0
    contests: list[ContestResult] = Field(default_factory=list)
    submissions: list[SubmissionResult] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _null_logs_are_empty(cls, data: Any) -> Any:
        # Documents written by older clients store an empty log as null
        if not isinstance(data, dict):
            return data
        nulls = [log for log in _LOGS if log in data and data[log] is None]
        if nulls:
            data = {**data, **dict.fromkeys(nulls, [])}
        return data


class Platforms(BaseModel):
    """Closed set of tracked platforms, one progress record each."""

    model_config = _STORED

    leetcode: PlatformProgress = Field(default_factory=PlatformProgress)
    codeforces: PlatformProgress = Field(default_factory=PlatformProgress)
    codechef: PlatformProgress = Field(default_factory=PlatformProgress)
    cpoj: PlatformProgress = Field(default_factory=PlatformProgress)
    hackerearth: PlatformProgress = Field(default_factory=PlatformProgress)
    atcoder: PlatformProgress = Field(default_factory=PlatformProgress)

    @model_validator(mode="before")
    @classmethod
    def _null_platforms_are_empty(cls, data: Any) -> Any:
        if isinstance(data, dict) and None in data.values():
            return {key: {} if value is None else value for key, value in data.items()}
        return data


class UserProgress(BaseModel):
    """Root document for a single user, keyed by email."""

    model_config = _STORED

    email: str
    first_name: StrictStr = ""
    last_name: StrictStr = ""
    platform_data: Platforms = Field(default_factory=Platforms)
