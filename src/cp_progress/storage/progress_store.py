"""Platform-scoped reads and appends against user progress documents.

Each user is one document keyed by ``email``. Contest and submission logs
live under ``platformData.<platform>`` and only ever grow at the tail:
appends are a single ``$push``/``$each`` update so concurrent writers never
overwrite each other, and "last entry" reads project a one-element slice
instead of fetching the whole document.
"""

import asyncio
from collections.abc import Awaitable, Sequence
from typing import Any, NamedTuple, TypeVar

import structlog
from pydantic import BaseModel, EmailStr, TypeAdapter, ValidationError
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError, WriteError

from cp_progress.errors import InvalidInput, MalformedRecord, StoreUnavailable, UserNotFound
from cp_progress.models.platform import HistoryLog, Platform, resolve_platform
from cp_progress.models.records import (
    ContestResult,
    PlatformProgress,
    Platforms,
    SubmissionResult,
)

logger = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 10.0

_email_adapter = TypeAdapter(EmailStr)

RecordT = TypeVar("RecordT", bound=BaseModel)
T = TypeVar("T")


class PlatformHistory(NamedTuple):
    contests: list[ContestResult]
    submissions: list[SubmissionResult]


def validate_email(email: str) -> str:
    """Check that ``email`` is a syntactically valid address.

    The address is returned unchanged so it still matches the stored key.
    """
    try:
        _email_adapter.validate_python(email)
    except ValidationError as e:
        raise InvalidInput(f"Invalid email address {email!r}") from e
    return email


def _coerce_records(records: Sequence[Any], model: type[RecordT]) -> list[RecordT]:
    coerced = []
    for index, record in enumerate(records):
        if isinstance(record, model):
            coerced.append(record)
            continue
        try:
            coerced.append(model.model_validate(record))
        except ValidationError as e:
            raise InvalidInput(f"{model.__name__} at position {index} is invalid: {e}") from e
    return coerced


def _node_at(document: dict, path: str) -> Any:
    """Walk a dotted path of a projected document; missing or null reads as None."""
    node: Any = document
    for key in path.split("."):
        if node is None:
            return None
        if not isinstance(node, dict):
            raise MalformedRecord(f"Expected a sub-document above {path}")
        node = node.get(key)
    return node


def _log_entries(document: dict, platform: Platform, log: HistoryLog) -> list:
    """Entries of ``platformData.<platform>.<log>``; a missing or null log is empty."""
    node = _node_at(document, platform.field_path(log))
    if node is None:
        return []
    if not isinstance(node, list):
        raise MalformedRecord(f"{platform.field_path(log)} is not an array")
    return node


class ProgressStore:
    """Read and append per-platform history for user documents.

    Args:
        collection: The users collection.
        timeout_seconds: Upper bound on every call into MongoDB.
    """

    def __init__(
        self,
        collection: AsyncCollection,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._collection = collection
        self.timeout_seconds = timeout_seconds

    async def get_last_contest(self, email: str, platform: str | Platform) -> ContestResult:
        """Most recent contest, or a zero-valued result if the log is empty."""
        return await self._last_entry(email, platform, "contests", ContestResult)

    async def get_last_submission(
        self, email: str, platform: str | Platform
    ) -> SubmissionResult:
        """Most recent submission, or a zero-valued result if the log is empty."""
        return await self._last_entry(email, platform, "submissions", SubmissionResult)

    async def append_contests(
        self,
        email: str,
        platform: str | Platform,
        contests: Sequence[ContestResult | dict],
    ) -> int:
        """Append contests to the tail of the platform's contest log.

        Returns:
            Number of entries appended.
        """
        email, platform = validate_email(email), Platform.parse(platform)
        records = _coerce_records(contests, ContestResult)
        return await self._append(email, platform, "contests", [r.to_document() for r in records])

    async def append_submissions(
        self,
        email: str,
        platform: str | Platform,
        submissions: Sequence[SubmissionResult | dict],
    ) -> int:
        """Append submissions to the tail of the platform's submission log.

        Returns:
            Number of entries appended.
        """
        email, platform = validate_email(email), Platform.parse(platform)
        records = _coerce_records(submissions, SubmissionResult)
        return await self._append(
            email, platform, "submissions", [r.to_document() for r in records]
        )

    async def get_platform_progress(
        self, email: str, platform: str | Platform
    ) -> PlatformProgress:
        """Load one platform's record, projecting away the rest of the document.

        Other platforms and profile fields are never decoded, so bad data there
        cannot fail this read.
        """
        email, platform = validate_email(email), Platform.parse(platform)
        projection = {"email": 1, platform.field_path(): 1}
        document = await self._call(
            "get_platform_progress", self._collection.find_one({"email": email}, projection)
        )
        if document is None:
            logger.warning("user_not_found", email=email, operation="get_platform_progress")
            raise UserNotFound(email)
        try:
            platforms = Platforms.model_validate(
                {platform.value: _node_at(document, platform.field_path())}
            )
        except ValidationError as e:
            logger.warning(
                "malformed_platform_record",
                email=email,
                platform=platform.value,
                error=str(e),
            )
            raise MalformedRecord(
                f"{platform.field_path()} for {email!r} does not match schema"
            ) from e
        logger.debug("platform_progress_loaded", email=email, platform=platform.value)
        return resolve_platform(platforms, platform)

    async def fetch_full_history(
        self, email: str, platform: str | Platform
    ) -> PlatformHistory:
        """Both complete logs of a platform.

        Reads the whole platform record; prefer the last-entry reads for polling.
        """
        progress = await self.get_platform_progress(email, platform)
        return PlatformHistory(
            contests=list(progress.contests),
            submissions=list(progress.submissions),
        )

    async def _last_entry(
        self,
        email: str,
        platform: str | Platform,
        log: HistoryLog,
        model: type[RecordT],
    ) -> RecordT:
        email, platform = validate_email(email), Platform.parse(platform)
        operation = f"get_last_{log}"
        projection = {"email": 1, platform.field_path(log): {"$slice": -1}}
        document = await self._call(
            operation, self._collection.find_one({"email": email}, projection)
        )
        if document is None:
            logger.warning("user_not_found", email=email, operation=operation)
            raise UserNotFound(email)

        entries = _log_entries(document, platform, log)
        if not entries:
            logger.debug("history_empty", email=email, platform=platform.value, log=log)
            return model()
        try:
            last = model.model_validate(entries[-1])
        except ValidationError as e:
            logger.warning(
                "malformed_history_entry",
                email=email,
                platform=platform.value,
                log=log,
                error=str(e),
            )
            raise MalformedRecord(f"Last {log} entry for {email!r} does not match schema") from e
        logger.debug("history_last_entry", email=email, platform=platform.value, log=log)
        return last

    async def _append(
        self,
        email: str,
        platform: Platform,
        log: HistoryLog,
        documents: list[dict],
    ) -> int:
        operation = f"append_{log}"
        if not documents:
            # Nothing to write, but an unknown user is still an error
            found = await self._call(
                operation, self._collection.find_one({"email": email}, {"_id": 1})
            )
            if found is None:
                logger.warning("user_not_found", email=email, operation=operation)
                raise UserNotFound(email)
            return 0

        result = await self._call(
            operation,
            self._collection.update_one(
                {"email": email},
                {"$push": {platform.field_path(log): {"$each": documents}}},
            ),
        )
        if not result.acknowledged:
            raise StoreUnavailable(f"{operation} for {email!r} was not acknowledged")
        if result.matched_count == 0:
            logger.warning("user_not_found", email=email, operation=operation)
            raise UserNotFound(email)
        logger.info(
            "history_appended",
            email=email,
            platform=platform.value,
            log=log,
            count=len(documents),
        )
        return len(documents)

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Await a MongoDB call under the store timeout."""
        try:
            async with asyncio.timeout(self.timeout_seconds):
                return await awaitable
        except TimeoutError as e:
            logger.warning("store_timeout", operation=operation, timeout=self.timeout_seconds)
            raise StoreUnavailable(
                f"{operation} did not complete within {self.timeout_seconds}s"
            ) from e
        except WriteError as e:
            logger.warning("store_write_rejected", operation=operation, error=str(e))
            raise MalformedRecord(f"{operation} rejected by the store: {e}") from e
        except PyMongoError as e:
            logger.warning("store_error", operation=operation, error=str(e))
            raise StoreUnavailable(f"{operation} failed: {e}") from e
