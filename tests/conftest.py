"""
Pytest configuration for the habit insight tests

Provides a fixed clock and factories for log entries and habit definitions
"""

from datetime import datetime, timedelta

import pytest

from models import DailyLogEntry, HabitDefinition, HabitType, LogSnapshot

NOW = datetime(2025, 6, 30, 12, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_entry():
    """Build a DailyLogEntry `days_ago` days before NOW."""

    def _make_entry(habit_id, days_ago, completed=True, quantity=0, hour=7, minute=0, order=1, date_key=None):
        day = NOW - timedelta(days=days_ago)
        return DailyLogEntry(
            id=f"{habit_id}-{days_ago}-{order}",
            dateKey=date_key or day.strftime("%Y-%m-%d"),
            habitId=habit_id,
            completed=completed,
            quantityActual=quantity,
            completionTime=day.replace(hour=hour, minute=minute),
            completionOrder=order,
        )

    return _make_entry


@pytest.fixture
def definitions():
    return [
        HabitDefinition(id="brush", name="Brush Teeth", type=HabitType.TIME, unit="minutes", initialTarget=2),
        HabitDefinition(id="floss", name="Floss", type=HabitType.BOOLEAN, initialTarget=0),
        HabitDefinition(id="breaths", name="Deep Breaths", type=HabitType.COUNT, unit="breaths", initialTarget=10),
    ]


@pytest.fixture
def make_snapshot(definitions):
    def _make_snapshot(entries, defs=None):
        return LogSnapshot(definitions=definitions if defs is None else defs, entries=entries)

    return _make_snapshot
