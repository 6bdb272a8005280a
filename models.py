from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime

# How a habit is tracked
class HabitType(str, Enum):
    BOOLEAN = "boolean"
    COUNT = "count"
    TIME = "time"

# Top-level container for a collection of habits (e.g. "Morning Routine")
class Routine(BaseModel):
    id: Optional[str] = None
    name: str
    order: int = 0
    isActive: bool = True

# Mid-level organization within a routine
class HabitGroup(BaseModel):
    id: Optional[str] = None
    name: str
    order: int = 0
    routineId: str

# Definitions are only swapped through LogStore.replace_habit
class HabitDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: str
    type: HabitType = Field(default=HabitType.BOOLEAN)
    unit: Optional[str] = None  # e.g. "minutes", None for boolean habits
    initialTarget: Optional[int] = None

class HabitMembership(BaseModel):
    habitId: str
    routineId: str
    groupId: str

class DailyLogEntry(BaseModel):
    id: Optional[str] = None
    dateKey: str  # "YYYY-MM-DD"; not validated, malformed keys are skipped by the engine
    habitId: str
    routineId: Optional[str] = None
    groupId: Optional[str] = None
    completed: bool = False
    quantityActual: int = 0
    completionTime: datetime  # aware timestamps are bucketed in local time
    completionOrder: int = 0  # 1-based rank among the day's entries
    cycleDay: Optional[int] = None  # reserved, not read by any computation

class LogSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    routines: List[Routine] = []
    groups: List[HabitGroup] = []
    definitions: List[HabitDefinition] = []
    memberships: List[HabitMembership] = []
    entries: List[DailyLogEntry] = []

class ChainCorrelation(BaseModel):
    predecessorId: str
    predecessorName: str
    successRate: float

class HabitInsight(BaseModel):
    id: str
    habitName: str
    consistencyScore: Optional[float] = None  # 0.0 to 1.0
    quantityDelta: Optional[float] = None  # avg difference from initial target
    bestCompletionTime: Optional[str] = None  # e.g. "7:30 AM"
    primarySuggestion: Optional[str] = None
    chain: Optional[ChainCorrelation] = None

class CoachingStatus(str, Enum):
    OK = "ok"
    UNAVAILABLE = "unavailable"
    NO_DATA = "no_data"

class CoachingSummary(BaseModel):
    status: CoachingStatus
    summary: Optional[str] = None
    error: Optional[str] = None
    generatedAt: Optional[str] = None

# Request bodies
class HabitCreate(BaseModel):
    id: Optional[str] = None
    name: str
    type: HabitType = Field(default=HabitType.BOOLEAN)
    unit: Optional[str] = None
    initialTarget: Optional[int] = None
    routineId: str
    groupId: str

class LogEntryUpsert(BaseModel):
    dateKey: str
    habitId: str
    completed: bool = False
    quantityActual: int = 0
    completionTime: datetime  # may carry an offset, e.g. "...T07:10:00+05:30"
    completionOrder: int = 0
    cycleDay: Optional[int] = None

class MoveHabitsRequest(BaseModel):
    source: List[int]
    destination: int
