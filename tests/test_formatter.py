"""Tests for the response formatter."""

import pytest

from cp_progress.errors import MalformedRecord
from cp_progress.formatting.responses import (
    complete_user_data_response,
    contest_response,
    format_contest,
    format_last_contest,
    format_submission,
    parse_contest_id,
    submission_response,
)
from cp_progress.models.records import ContestResult, SubmissionResult


def test_contest_id_is_parsed_to_int():
    record = format_contest(ContestResult(name="Round 12345", contest_id="12345"))
    assert record.contest_id == 12345
    assert isinstance(record.contest_id, int)


@pytest.mark.parametrize("raw", ["", "abc", "12a", "1_000", "-5", "1.5"])
def test_non_numeric_contest_id_is_malformed(raw):
    with pytest.raises(MalformedRecord):
        format_contest(ContestResult(contest_id=raw))


def test_contest_id_whitespace_is_ignored():
    assert parse_contest_id(" 42 ") == 42


def test_contest_fields_are_mapped():
    record = format_contest(
        ContestResult(
            name="Weekly 300", date="2022-06-26", rank=1500, rating=1600, solved=3, contest_id="300"
        )
    )
    assert record.model_dump(by_alias=True) == {
        "contestName": "Weekly 300",
        "rank": 1500.0,
        "rating": 1600.0,
        "contestId": 300,
        "contestDate": "2022-06-26",
    }


def test_submission_fields_are_mapped():
    record = format_submission(
        SubmissionResult(
            problem_url="https://judge.example/p/1",
            problem_name="Two Sum",
            date="2024-01-01",
            language="python3",
            status="Accepted",
            code_url="https://judge.example/s/9",
        )
    )
    assert record.model_dump(by_alias=True) == {
        "date": "2024-01-01",
        "language": "python3",
        "problemStatus": "Accepted",
        "problemTitle": "Two Sum",
        "problemLink": "https://judge.example/p/1",
        "codeLink": "https://judge.example/s/9",
    }


def test_responses_keep_log_order():
    contests = [ContestResult(name=f"c{i}", contest_id=str(i)) for i in range(3)]
    submissions = [SubmissionResult(problem_name=f"p{i}") for i in range(3)]

    assert [c.contest_name for c in contest_response(contests).contests] == ["c0", "c1", "c2"]
    assert [s.problem_title for s in submission_response(submissions).submissions] == [
        "p0",
        "p1",
        "p2",
    ]

    complete = complete_user_data_response(contests, submissions)
    assert [c.contest_id for c in complete.contests] == [0, 1, 2]
    assert len(complete.submissions) == 3


def test_empty_logs():
    complete = complete_user_data_response([], [])
    assert complete.model_dump() == {"submissions": [], "contests": []}


def test_one_bad_contest_fails_the_whole_response():
    contests = [ContestResult(contest_id="1"), ContestResult(contest_id="oops")]
    with pytest.raises(MalformedRecord):
        contest_response(contests)


def test_last_contest_of_empty_log_is_zero_valued():
    record = format_last_contest(ContestResult())
    assert record.model_dump(by_alias=True) == {
        "contestName": "",
        "rank": 0.0,
        "rating": 0.0,
        "contestId": 0,
        "contestDate": "",
    }


def test_last_contest_still_checks_stored_ids():
    assert format_last_contest(ContestResult(name="R1", contest_id="77")).contest_id == 77
    with pytest.raises(MalformedRecord):
        format_last_contest(ContestResult(name="R1", contest_id=""))
