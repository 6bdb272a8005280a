from typing import Dict, List, Optional
from uuid import uuid4
import logging

from models import DailyLogEntry, HabitDefinition, HabitGroup, HabitMembership, LogSnapshot, Routine

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when a store operation would break the routine/group/habit relations."""


class NotFoundError(StoreError):
    pass


def move_items(items: list, source: List[int], destination: int) -> list:
    """
    Move the items at the given offsets so they land before `destination`.

    `destination` is an offset into the list as it was before the move, so
    moving [0] to len(items) sends the first item to the end.
    """
    offsets = sorted(set(source))
    if any(i < 0 or i >= len(items) for i in offsets):
        raise StoreError(f"Move offsets {source} out of range for {len(items)} items")
    if destination < 0 or destination > len(items):
        raise StoreError(f"Move destination {destination} out of range for {len(items)} items")

    moving = [items[i] for i in offsets]
    remaining = [item for i, item in enumerate(items) if i not in offsets]
    insert_at = destination - sum(1 for i in offsets if i < destination)
    return remaining[:insert_at] + moving + remaining[insert_at:]


class LogStore:
    """
    In-memory owner of routines, groups, habit definitions and the daily log.

    Habit membership in a (routine, group) pair is kept in the same store and
    updated in the same call as habit creation and deletion, so it never points
    at a habit or routine that no longer exists.
    """

    def __init__(self):
        self.routines: List[Routine] = []
        self.habit_groups: List[HabitGroup] = []
        self.habit_definitions: List[HabitDefinition] = []
        self.memberships: Dict[str, HabitMembership] = {}
        self.daily_log: List[DailyLogEntry] = []

    # Lookups

    def get_routine(self, routine_id: str) -> Routine:
        routine = next((r for r in self.routines if r.id == routine_id), None)
        if routine is None:
            raise NotFoundError(f"Routine {routine_id} not found")
        return routine

    def get_group(self, group_id: str) -> HabitGroup:
        group = next((g for g in self.habit_groups if g.id == group_id), None)
        if group is None:
            raise NotFoundError(f"Habit group {group_id} not found")
        return group

    def get_habit(self, habit_id: str) -> HabitDefinition:
        habit = next((h for h in self.habit_definitions if h.id == habit_id), None)
        if habit is None:
            raise NotFoundError(f"Habit {habit_id} not found")
        return habit

    def fetch_all_routines(self) -> List[Routine]:
        return sorted(self.routines, key=lambda r: r.order)

    def get_habits(self, routine_id: str) -> List[HabitDefinition]:
        self.get_routine(routine_id)
        return [
            habit for habit in self.habit_definitions
            if self.memberships[habit.id].routineId == routine_id
        ]

    # Routines and groups

    def add_routine(self, routine: Routine) -> Routine:
        routine = routine.model_copy(update={"id": routine.id or str(uuid4())})
        self.routines.append(routine)
        logger.info(f"Added routine {routine.id} ({routine.name})")
        return routine

    def add_group(self, group: HabitGroup) -> HabitGroup:
        self.get_routine(group.routineId)
        group = group.model_copy(update={"id": group.id or str(uuid4())})
        self.habit_groups.append(group)
        logger.info(f"Added habit group {group.id} to routine {group.routineId}")
        return group

    def delete_routine(self, routine_id: str) -> None:
        """Delete a routine along with its groups, member habits and their memberships."""
        self.get_routine(routine_id)
        habit_ids = {
            habit_id for habit_id, membership in self.memberships.items()
            if membership.routineId == routine_id
        }

        self.routines = [r for r in self.routines if r.id != routine_id]
        self.habit_groups = [g for g in self.habit_groups if g.routineId != routine_id]
        self.habit_definitions = [h for h in self.habit_definitions if h.id not in habit_ids]
        for habit_id in habit_ids:
            del self.memberships[habit_id]
        # Log entries are history and stay; the engine skips habits without a definition
        logger.info(f"Deleted routine {routine_id} and {len(habit_ids)} habits")

    # Habits

    def add_habit(self, habit: HabitDefinition, routine_id: str, group_id: str) -> HabitDefinition:
        self.get_routine(routine_id)
        group = self.get_group(group_id)
        if group.routineId != routine_id:
            raise StoreError(f"Habit group {group_id} does not belong to routine {routine_id}")

        habit_id = habit.id or str(uuid4())
        if habit_id in self.memberships:
            raise StoreError(f"Habit {habit_id} already exists")

        habit = habit.model_copy(update={"id": habit_id})
        self.habit_definitions.append(habit)
        self.memberships[habit_id] = HabitMembership(habitId=habit_id, routineId=routine_id, groupId=group_id)
        logger.info(f"Added habit {habit_id} ({habit.name}) to group {group_id}")
        return habit

    def replace_habit(self, habit: HabitDefinition) -> HabitDefinition:
        for index, existing in enumerate(self.habit_definitions):
            if existing.id == habit.id:
                self.habit_definitions[index] = habit
                logger.info(f"Replaced habit {habit.id}")
                return habit
        raise NotFoundError(f"Habit {habit.id} not found")

    def delete_habit(self, habit_id: str) -> None:
        self.get_habit(habit_id)
        self.habit_definitions = [h for h in self.habit_definitions if h.id != habit_id]
        del self.memberships[habit_id]
        logger.info(f"Deleted habit {habit_id}")

    def move_habits(self, routine_id: str, source: List[int], destination: int) -> List[HabitDefinition]:
        """Reorder a routine's habits; other routines keep their slots in the definition list."""
        routine_habits = self.get_habits(routine_id)
        reordered = iter(move_items(routine_habits, source, destination))
        routine_ids = {habit.id for habit in routine_habits}
        self.habit_definitions = [
            next(reordered) if habit.id in routine_ids else habit
            for habit in self.habit_definitions
        ]
        logger.info(f"Reordered habits in routine {routine_id}")
        return self.get_habits(routine_id)

    # Daily log

    def save_daily_log_entry(self, entry: DailyLogEntry) -> DailyLogEntry:
        """Upsert keyed by (habitId, dateKey); an updated entry keeps its original id."""
        self.get_habit(entry.habitId)
        membership = self.memberships[entry.habitId]
        entry = entry.model_copy(update={
            "routineId": entry.routineId or membership.routineId,
            "groupId": entry.groupId or membership.groupId,
        })

        for index, existing in enumerate(self.daily_log):
            if existing.habitId == entry.habitId and existing.dateKey == entry.dateKey:
                entry = entry.model_copy(update={"id": existing.id})
                self.daily_log[index] = entry
                logger.info(f"Updated log entry for {entry.habitId} on {entry.dateKey}")
                return entry

        entry = entry.model_copy(update={"id": entry.id or str(uuid4())})
        self.daily_log.append(entry)
        logger.info(f"Added new log entry for {entry.habitId} on {entry.dateKey}")
        return entry

    def get_log(self, date_key: Optional[str] = None) -> List[DailyLogEntry]:
        if date_key is None:
            return list(self.daily_log)
        return [entry for entry in self.daily_log if entry.dateKey == date_key]

    def snapshot(self) -> LogSnapshot:
        return LogSnapshot(
            routines=list(self.routines),
            groups=list(self.habit_groups),
            definitions=list(self.habit_definitions),
            memberships=list(self.memberships.values()),
            entries=list(self.daily_log),
        )
