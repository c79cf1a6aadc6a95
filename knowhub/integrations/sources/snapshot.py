"""
Records Snapshot Loader

Loads a YAML (or JSON) snapshot of source records and wraps each section in
an in-memory adapter.

Expected layout:
    roster: [{id, name, department?, role?}, ...]
    profiles: [...]
    qa_responses: [...]
    survey_responses: [...]
    status_notes: [...]
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from knowhub.integrations.sources.base import SourceAdapters
from knowhub.integrations.sources.memory import (
    InMemoryRosterProvider,
    InMemorySourceAdapter,
)

logger = logging.getLogger(__name__)

SNAPSHOT_SECTIONS = (
    "roster",
    "profiles",
    "qa_responses",
    "survey_responses",
    "status_notes",
)


class SnapshotLoadError(Exception):
    """Raised when a snapshot file cannot be read or has the wrong shape."""

    pass


def load_snapshot(path: Union[str, Path]) -> Dict[str, List[Any]]:
    """
    Read a snapshot file into raw record lists, one per section.

    Records are left as mappings; the extractor validates them so malformed
    entries are skipped individually rather than failing the whole load.

    Raises:
        SnapshotLoadError: If the file is unreadable or not a mapping of lists
    """
    snapshot_path = Path(path)
    try:
        with open(snapshot_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise SnapshotLoadError(f"Failed to read snapshot {snapshot_path}: {e}") from e

    if not isinstance(data, dict):
        raise SnapshotLoadError(f"Snapshot {snapshot_path} must be a mapping")

    sections = {}
    for section in SNAPSHOT_SECTIONS:
        records = data.get(section) or []
        if not isinstance(records, list):
            raise SnapshotLoadError(
                f"Snapshot section '{section}' must be a list, got {type(records).__name__}"
            )
        sections[section] = records

    logger.info(
        f"Loaded snapshot {snapshot_path}: "
        + ", ".join(f"{name}={len(records)}" for name, records in sections.items())
    )
    return sections


def adapters_from_snapshot(sections: Dict[str, List[Any]]) -> SourceAdapters:
    return SourceAdapters(
        profiles=InMemorySourceAdapter(sections.get("profiles")),
        qa_responses=InMemorySourceAdapter(sections.get("qa_responses")),
        survey_responses=InMemorySourceAdapter(sections.get("survey_responses")),
        status_notes=InMemorySourceAdapter(sections.get("status_notes")),
        roster=InMemoryRosterProvider(sections.get("roster")),
    )


def empty_adapters() -> SourceAdapters:
    return adapters_from_snapshot({})
