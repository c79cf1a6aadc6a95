"""
Source Adapter Interfaces

Read-only boundaries to the record stores. The engine never writes back.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Protocol, Type, runtime_checkable

from pydantic import BaseModel, ValidationError

from knowhub.utils.helpers import record_field

logger = logging.getLogger(__name__)


@runtime_checkable
class SourceAdapter(Protocol):
    """Provider of one kind of activity record."""

    async def list_all(self) -> List[Any]:
        ...

    async def list_by_user(self, user_id: str) -> List[Any]:
        ...


@runtime_checkable
class RosterProvider(Protocol):
    """Provider of the organization's user roster."""

    async def list_all_users(self) -> List[Any]:
        ...


@dataclass
class SourceAdapters:
    """The four record sources plus the roster, injected as one bundle."""

    profiles: SourceAdapter
    qa_responses: SourceAdapter
    survey_responses: SourceAdapter
    status_notes: SourceAdapter
    roster: RosterProvider


def validate_records(
    raw_records: List[Any], source_name: str, model: Type[BaseModel]
) -> List[Any]:
    """
    Validate adapter output record by record.

    Args:
        raw_records: Models or plain mappings returned by an adapter
        source_name: Used in log messages only
        model: Record model to validate against

    Returns:
        Valid records as model instances; malformed ones are skipped with a warning
    """
    records = []
    for raw in raw_records or []:
        try:
            records.append(model.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed {source_name} record "
                f"{record_field(raw, 'id', '<no id>')}: {e.error_count()} validation error(s)"
            )
    logger.debug(f"Validated {len(records)}/{len(raw_records or [])} {source_name} records")
    return records
