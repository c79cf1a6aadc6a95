"""Pytest configuration and fixtures for test suite.

Provides:
- A fixed clock so recency, staleness and trend windows are deterministic
- A two-person roster (Alice, Bob) with one record of every source kind
- Factories for source adapters and knowledge items
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from datetime import datetime, timedelta, timezone

import pytest

from knowhub.config import Settings
from knowhub.core.vocabulary import load_vocabulary
from knowhub.integrations.sources import adapters_from_snapshot
from knowhub.models.knowledge import KnowledgeItem, KnowledgeKind, KnowledgeSource
from knowhub.models.records import RosterUser

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def settings():
    """Default settings, isolated from any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def vocabulary():
    return load_vocabulary()


@pytest.fixture
def roster():
    return [
        RosterUser(id="U1", name="Alice", department="Engineering", role="Developer"),
        RosterUser(id="U2", name="Bob", department="Design", role="Designer"),
    ]


@pytest.fixture
def snapshot_sections():
    """Raw records as the snapshot loader would return them."""
    return {
        "roster": [
            {"id": "U1", "name": "Alice", "department": "Engineering", "role": "Developer"},
            {"id": "U2", "name": "Bob", "department": "Design", "role": "Designer"},
        ],
        "profiles": [
            {
                "id": "P1",
                "user_id": "U1",
                "expertise": ["React"],
                "work_style": "Deep focus in the mornings",
                "communication_style": "Async first",
                "created_at": days_ago(10),
            },
            {
                "id": "P2",
                "user_id": "U2",
                "expertise": ["Figma", "UX research"],
                "created_at": days_ago(12),
            },
        ],
        "qa_responses": [
            {
                "id": "Q1",
                "user_id": "U1",
                "question": {
                    "id": "QQ1",
                    "content": "How do you set up local environments?",
                    "category": "technology",
                },
                "response": "I use Docker for local development every day.",
                "created_at": days_ago(5),
            },
        ],
        "survey_responses": [
            {
                "id": "S1",
                "user_id": "U2",
                "survey": {
                    "id": "SV1",
                    "title": "Team Tools Survey",
                    "questions": [
                        {"id": "q1", "type": "text", "question": "Which tool helps you most?"},
                        {"id": "q2", "type": "rating", "question": "Rate the tooling"},
                    ],
                },
                "responses": {"q1": "Figma for quick prototyping", "q2": 4},
                "created_at": days_ago(3),
            },
        ],
        "status_notes": [
            {
                "id": "N1",
                "user_id": "U2",
                "condition": "good",
                "progress": "Finished the onboarding flow redesign in Figma",
                "notes": "short",
                "created_at": days_ago(1),
            },
        ],
    }


@pytest.fixture
def adapters(snapshot_sections):
    return adapters_from_snapshot(snapshot_sections)


@pytest.fixture
def make_item():
    """Factory for knowledge items with sensible defaults."""

    def _make_item(
        item_id="item",
        kind=KnowledgeKind.EXPERIENCE,
        content="content",
        source=KnowledgeSource.QA_RESPONSE,
        record_id=None,
        user_id="U1",
        user_name="Alice",
        confidence=0.7,
        tags=None,
        created_at=None,
    ):
        return KnowledgeItem(
            id=item_id,
            kind=kind,
            content=content,
            source=source,
            record_id=record_id,
            user_id=user_id,
            user_name=user_name,
            confidence=confidence,
            tags=tags or [],
            created_at=created_at or NOW,
        )

    return _make_item
