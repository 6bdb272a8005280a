from datetime import datetime, time, timedelta
from typing import Dict, List, Optional
import logging

from models import ChainCorrelation, DailyLogEntry, HabitDefinition, HabitInsight, LogSnapshot
from prompts import NO_DATA_PROMPT, PERFORMANCE_DATA_HEADER, NO_TIME_PATTERN

logger = logging.getLogger(__name__)

DATE_KEY_FORMAT = "%Y-%m-%d"
DEFAULT_WINDOW_DAYS = 30

# Suggestion and correlation thresholds
INCONSISTENT_THRESHOLD = 0.5
HIGH_CONSISTENCY_THRESHOLD = 0.8
OVER_TARGET_DELTA = 2
CHAIN_CORRELATION_THRESHOLD = 0.7

# Temporal buckets
TIME_BUCKET_MINUTES = 30
MIN_BUCKET_OCCURRENCES = 3

INCONSISTENT_SUGGESTION = "This habit is inconsistent. Try pairing it with a stronger one!"
OVER_TARGET_SUGGESTION = "Fantastic consistency! You're exceeding your goal, try raising your target by 1 unit."


def parse_date_key(date_key: str) -> Optional[datetime]:
    """Parse a "YYYY-MM-DD" date key to midnight of that day, or None if malformed."""
    try:
        return datetime.combine(datetime.strptime(date_key, DATE_KEY_FORMAT).date(), time.min)
    except (TypeError, ValueError):
        logger.debug(f"Skipping malformed date key {date_key!r}")
        return None


def local_time(timestamp: datetime) -> datetime:
    """Aware timestamps are converted to the local timezone; naive ones are already local."""
    if timestamp.tzinfo is None:
        return timestamp
    return timestamp.astimezone()


def format_time_slot(hour: int, minute: int) -> str:
    """Render a bucket start as a 12-hour clock string, e.g. "7:30 AM"."""
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12}:{minute:02d} {suffix}"


def suggestion_for(consistency: float, delta: float) -> Optional[str]:
    if consistency < INCONSISTENT_THRESHOLD:
        return INCONSISTENT_SUGGESTION
    if consistency > HIGH_CONSISTENCY_THRESHOLD and delta > OVER_TARGET_DELTA:
        return OVER_TARGET_SUGGESTION
    return None


class SuggestionEngine:
    """
    Analyzes the historical log to provide per-habit insights.

    The engine never subscribes to the store. Callers hand it a fresh
    LogSnapshot through recompute() after every mutation, and each call
    replaces the insight list wholesale.
    """

    def __init__(self, snapshot: Optional[LogSnapshot] = None, now: Optional[datetime] = None):
        self.snapshot = snapshot or LogSnapshot()
        self.insights: List[HabitInsight] = []
        self._now = now
        if snapshot is not None:
            self.recompute(snapshot, now)

    @property
    def log_history(self) -> List[DailyLogEntry]:
        return self.snapshot.entries

    @property
    def habit_definitions(self) -> List[HabitDefinition]:
        return self.snapshot.definitions

    def now(self) -> datetime:
        return self._now or datetime.now()

    def _definition(self, habit_id: str) -> Optional[HabitDefinition]:
        return next((d for d in self.habit_definitions if d.id == habit_id), None)

    def _window_start(self, days: int) -> datetime:
        # Date keys are naive calendar days, so compare against a naive cutoff
        return (self.now() - timedelta(days=days)).replace(tzinfo=None)

    def recompute(self, snapshot: LogSnapshot, now: Optional[datetime] = None) -> List[HabitInsight]:
        """Entry point for all analysis, run whenever the log changes."""
        self.snapshot = snapshot
        self._now = now
        if not self.log_history:
            self.insights = []
            return self.insights

        logged_ids = {entry.habitId for entry in self.log_history}
        new_insights = []
        # Definition order keeps the insight list (and the prompt) reproducible
        for habit_def in self.habit_definitions:
            if habit_def.id not in logged_ids:
                continue

            consistency = self.calculate_consistency(habit_def.id)
            delta = self.calculate_quantity_delta(habit_def.id, habit_def.initialTarget)

            new_insights.append(HabitInsight(
                id=habit_def.id,
                habitName=habit_def.name,
                consistencyScore=consistency,
                quantityDelta=delta,
                bestCompletionTime=self.find_best_completion_time(habit_def.id),
                primarySuggestion=suggestion_for(consistency, delta),
                chain=self.analyze_habit_chaining(habit_def.id),
            ))

        skipped = logged_ids - {insight.id for insight in new_insights}
        if skipped:
            logger.debug(f"Ignoring log entries for undefined habits: {sorted(skipped)}")

        self.insights = new_insights
        logger.info(f"Recomputed insights for {len(new_insights)} habits from {len(self.log_history)} log entries")
        return self.insights

    # Calculation methods

    def calculate_consistency(self, habit_id: str, days: int = DEFAULT_WINDOW_DAYS) -> float:
        """Fraction of the habit's logged days within the window that were also completed."""
        window_start = self._window_start(days)

        recent_logs = []
        for entry in self.log_history:
            if entry.habitId != habit_id:
                continue
            log_date = parse_date_key(entry.dateKey)
            if log_date is not None and log_date >= window_start:
                recent_logs.append(entry)

        logged_days = {entry.dateKey for entry in recent_logs}
        if not logged_days:
            return 0.0

        completed_days = {entry.dateKey for entry in recent_logs if entry.completed}
        return len(completed_days) / len(logged_days)

    def calculate_quantity_delta(self, habit_id: str, target: Optional[int]) -> float:
        """Average difference between achieved quantity and target, over completed entries."""
        if target is None or target <= 0:
            return 0.0

        logs = [entry for entry in self.log_history if entry.habitId == habit_id and entry.completed]
        if not logs:
            return 0.0

        total_delta = sum(entry.quantityActual - target for entry in logs)
        return total_delta / len(logs)

    def find_best_completion_time(self, habit_id: str) -> Optional[str]:
        """Most frequent 30-minute completion slot, or None below MIN_BUCKET_OCCURRENCES."""
        time_buckets: Dict[tuple, int] = {}
        for entry in self.log_history:
            if entry.habitId != habit_id or not entry.completed:
                continue
            completed_at = local_time(entry.completionTime)
            hour = completed_at.hour
            bucket_minute = 0 if completed_at.minute < TIME_BUCKET_MINUTES else TIME_BUCKET_MINUTES
            bucket = (hour, bucket_minute)
            time_buckets[bucket] = time_buckets.get(bucket, 0) + 1

        if not time_buckets:
            return None

        # Highest count wins; ties go to the earliest slot of the day
        best_bucket, max_count = min(time_buckets.items(), key=lambda item: (-item[1], item[0]))
        if max_count < MIN_BUCKET_OCCURRENCES:
            return None

        return format_time_slot(*best_bucket)

    def analyze_habit_chaining(self, habit_id: str, days: Optional[int] = DEFAULT_WINDOW_DAYS) -> Optional[ChainCorrelation]:
        """
        Find the habit that most often immediately precedes a completion of habit_id.

        For each day the target was completed, the entry right before it (by
        completion order) earns a success. For each day the target was logged
        at all, every other habit logged that day earns an occurrence. The
        best success rate is reported only above CHAIN_CORRELATION_THRESHOLD.
        Passing days=None scans the entire history.
        """
        if not any(entry.habitId == habit_id and entry.completed for entry in self.log_history):
            return None

        logs_by_day: Dict[str, List[DailyLogEntry]] = {}
        window_start = self._window_start(days) if days is not None else None
        for entry in self.log_history:
            if window_start is not None:
                log_date = parse_date_key(entry.dateKey)
                if log_date is None or log_date < window_start:
                    continue
            logs_by_day.setdefault(entry.dateKey, []).append(entry)

        successes: Dict[str, int] = {}
        occurrences: Dict[str, int] = {}

        for date_key in sorted(logs_by_day):
            daily_logs = sorted(logs_by_day[date_key], key=lambda entry: entry.completionOrder)
            if len(daily_logs) < 2:
                continue

            target_index = next(
                (i for i, entry in enumerate(daily_logs) if entry.habitId == habit_id and entry.completed),
                None,
            )
            if target_index is not None and target_index > 0:
                predecessor_id = daily_logs[target_index - 1].habitId
                successes[predecessor_id] = successes.get(predecessor_id, 0) + 1

            if any(entry.habitId == habit_id for entry in daily_logs):
                for entry in daily_logs:
                    if entry.habitId != habit_id:
                        occurrences[entry.habitId] = occurrences.get(entry.habitId, 0) + 1

        best_id, best_rate, best_count = None, 0.0, 0
        for predecessor_id in sorted(occurrences):
            total = occurrences[predecessor_id]
            if total <= 0:
                continue
            count = successes.get(predecessor_id, 0)
            rate = count / total
            if rate > best_rate or (rate == best_rate and count > best_count):
                best_id, best_rate, best_count = predecessor_id, rate, count

        if best_id is None or best_rate <= CHAIN_CORRELATION_THRESHOLD:
            return None

        predecessor_def = self._definition(best_id)
        if predecessor_def is None:
            return None

        return ChainCorrelation(
            predecessorId=best_id,
            predecessorName=predecessor_def.name,
            successRate=best_rate,
        )

    # LLM data preparation

    def generate_llm_prompt_data(self) -> str:
        return generate_llm_prompt_data(self.insights)


def generate_llm_prompt_data(insights: List[HabitInsight]) -> str:
    """
    Compile the computed insights into the plain-text block handed to the coach.

    Only text crosses this boundary. Identical input always renders the
    identical string.
    """
    if not insights:
        return NO_DATA_PROMPT

    prompt_data = PERFORMANCE_DATA_HEADER + "\n"

    for insight in insights:
        consistency_percent = "%.0f%%" % ((insight.consistencyScore or 0.0) * 100)
        delta = "%.1f" % (insight.quantityDelta or 0.0)
        best_time = insight.bestCompletionTime or NO_TIME_PATTERN

        prompt_data += f"Habit: {insight.habitName}\n"
        prompt_data += f"  - Consistency: {consistency_percent}\n"
        prompt_data += f"  - Avg. Quantity Delta vs. Target: {delta}\n"
        prompt_data += f"  - Best Success Time Slot: {best_time}\n"

        if insight.chain is not None:
            rate = "%.0f%%" % (insight.chain.successRate * 100)
            prompt_data += (
                f"  - Successful Predecessor: Completed {insight.chain.predecessorName} "
                f"led to this habit being done {rate} of the time.\n"
            )
        prompt_data += "\n"

    return prompt_data


def insights_for_snapshot(snapshot: LogSnapshot, now: Optional[datetime] = None) -> List[HabitInsight]:
    """Pure recomputation: a fresh insight list for the given snapshot."""
    return SuggestionEngine().recompute(snapshot, now)
