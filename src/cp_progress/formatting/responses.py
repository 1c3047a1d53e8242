"""Convert stored history records into transport response records."""

import re
from collections.abc import Iterable

from cp_progress.errors import MalformedRecord
from cp_progress.models.records import ContestResult, SubmissionResult
from cp_progress.models.responses import (
    CompleteUserDataResponse,
    ContestRecord,
    ContestResponse,
    SubmissionRecord,
    SubmissionResponse,
)

_CONTEST_ID_RE = re.compile(r"[0-9]+")


def parse_contest_id(raw: str) -> int:
    """Parse a stored contest identifier into its numeric form.

    Raises:
        MalformedRecord: If the identifier is not a non-negative integer.
    """
    value = raw.strip()
    if not _CONTEST_ID_RE.fullmatch(value):
        raise MalformedRecord(f"Contest id {raw!r} is not numeric")
    return int(value)


def format_submission(submission: SubmissionResult) -> SubmissionRecord:
    return SubmissionRecord(
        date=submission.date,
        language=submission.language,
        problem_status=submission.status,
        problem_title=submission.problem_name,
        problem_link=submission.problem_url,
        code_link=submission.code_url,
    )


def format_contest(contest: ContestResult) -> ContestRecord:
    return ContestRecord(
        contest_name=contest.name,
        rank=contest.rank,
        rating=contest.rating,
        contest_id=parse_contest_id(contest.contest_id),
        contest_date=contest.date,
    )


def format_last_contest(contest: ContestResult) -> ContestRecord:
    """Format the latest contest, where an empty log yields the zero-valued record.

    Only the zero value skips contest id parsing; any stored entry is still
    checked by :func:`format_contest`.
    """
    if contest == ContestResult():
        return ContestRecord(
            contest_name="", rank=0.0, rating=0.0, contest_id=0, contest_date=""
        )
    return format_contest(contest)


def submission_response(submissions: Iterable[SubmissionResult]) -> SubmissionResponse:
    return SubmissionResponse(submissions=[format_submission(s) for s in submissions])


def contest_response(contests: Iterable[ContestResult]) -> ContestResponse:
    return ContestResponse(contests=[format_contest(c) for c in contests])


def complete_user_data_response(
    contests: Iterable[ContestResult],
    submissions: Iterable[SubmissionResult],
) -> CompleteUserDataResponse:
    """Format both logs of a platform into one response."""
    return CompleteUserDataResponse(
        submissions=[format_submission(s) for s in submissions],
        contests=[format_contest(c) for c in contests],
    )
