"""Global test fixtures and utilities for learnquest tests"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from datetime import date, datetime, timezone

from learnquest.db.connection import db
from learnquest.models.profile import Profile


# ============================================================================
# Dates
# ============================================================================

TODAY = date(2024, 3, 15)
NOW = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def now():
    return NOW


# ============================================================================
# Profile Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "7b6f1c2e-1111-4a4a-9c9c-000000000001"


@pytest.fixture
def profile_factory(test_user_id):
    """Build a Profile with overrides"""
    def _create(**overrides):
        data = {
            "id": test_user_id,
            "name": "Ploy",
            "class_level": "M.4",
            "xp": 0,
            "level": 1,
            "streak": 0,
            "quest_streak": 0,
            "total_days": 0,
            "last_activity_date": None,
            "last_quest_date": None,
        }
        data.update(overrides)
        return Profile(**data)
    return _create


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def mock_db_cursor():
    """Mock database cursor with standard query results"""
    cursor = AsyncMock()
    cursor.fetchone = AsyncMock(return_value=None)
    cursor.fetchall = AsyncMock(return_value=[])
    cursor.execute = AsyncMock()
    return cursor


@pytest.fixture
def mock_db_connection(mock_db_cursor):
    """Mock connection whose cursor() works as an async context manager"""
    conn = MagicMock()
    conn.cursor.return_value.__aenter__.return_value = mock_db_cursor
    conn.commit = AsyncMock()
    return conn


@pytest.fixture
def patched_db(mock_db_connection):
    """
    Route db.connection() and db.transaction() to the mock connection.

    Yields the mock connection; tests read the cursor from the
    mock_db_cursor fixture.
    """
    with patch.object(db, "connection") as mock_connection, \
            patch.object(db, "transaction") as mock_transaction:
        mock_connection.return_value.__aenter__.return_value = mock_db_connection
        mock_transaction.return_value.__aenter__.return_value = mock_db_connection
        yield mock_db_connection


# ============================================================================
# API Fixtures
# ============================================================================

@pytest.fixture
def test_api_key():
    """Test API key"""
    return "test_key_123"
