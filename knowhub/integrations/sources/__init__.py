# Source adapter module
from knowhub.integrations.sources.base import (
    SourceAdapter,
    RosterProvider,
    SourceAdapters,
    validate_records,
)
from knowhub.integrations.sources.memory import (
    InMemorySourceAdapter,
    InMemoryRosterProvider,
)
from knowhub.integrations.sources.snapshot import (
    SnapshotLoadError,
    load_snapshot,
    adapters_from_snapshot,
    empty_adapters,
)

__all__ = [
    "SourceAdapter",
    "RosterProvider",
    "SourceAdapters",
    "validate_records",
    "InMemorySourceAdapter",
    "InMemoryRosterProvider",
    "SnapshotLoadError",
    "load_snapshot",
    "adapters_from_snapshot",
    "empty_adapters",
]
