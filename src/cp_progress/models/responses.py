"""Response shapes handed to the transport layer."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_RESPONSE = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubmissionRecord(BaseModel):
    model_config = _RESPONSE

    date: str
    language: str
    problem_status: str
    problem_title: str
    problem_link: str
    code_link: str


class ContestRecord(BaseModel):
    model_config = _RESPONSE

    contest_name: str
    rank: float
    rating: float
    contest_id: int
    contest_date: str


class SubmissionResponse(BaseModel):
    submissions: list[SubmissionRecord] = Field(default_factory=list)


class ContestResponse(BaseModel):
    contests: list[ContestRecord] = Field(default_factory=list)


class CompleteUserDataResponse(BaseModel):
    """Both history logs of one platform, oldest entry first."""

    submissions: list[SubmissionRecord] = Field(default_factory=list)
    contests: list[ContestRecord] = Field(default_factory=list)
