import itertools
import logging
import os

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from typing import List, Optional
from contextlib import asynccontextmanager

import coach
from analytics import SuggestionEngine
from models import (
    CoachingSummary,
    DailyLogEntry,
    HabitCreate,
    HabitDefinition,
    HabitGroup,
    HabitInsight,
    LogEntryUpsert,
    MoveHabitsRequest,
    Routine,
)
from scheduler import init_scheduler
from store import LogStore, NotFoundError, StoreError

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "http://localhost,http://localhost:3000").split(",")
    if origin.strip()
]

store = LogStore()
engine = SuggestionEngine()
latest_summary: Optional[CoachingSummary] = None
latest_summary_run = 0
coaching_runs = itertools.count(1)


def refresh_insights() -> List[HabitInsight]:
    """Recompute every insight from a fresh store snapshot. Call after any mutation."""
    return engine.recompute(store.snapshot())


async def run_coaching_summary() -> CoachingSummary:
    """
    Request a coaching summary for the current insights.

    Runs are numbered when they start; a run that finishes after a newer one
    has already stored its summary does not replace it.
    """
    global latest_summary, latest_summary_run
    run = next(coaching_runs)
    prompt_data = engine.generate_llm_prompt_data()
    summary = await coach.get_coaching_summary(prompt_data)
    if run > latest_summary_run:
        latest_summary, latest_summary_run = summary, run
    else:
        logger.info(f"Discarding coaching summary from run {run}, run {latest_summary_run} is newer")
    logger.info(f"Coaching summary finished with status {summary.status.value}")
    return summary


async def run_scheduled_coaching() -> None:
    logger.info("Starting weekly coaching summary...")
    await run_coaching_summary()
    logger.info("Completed weekly coaching summary.")


def raise_for_store_error(e: StoreError):
    if isinstance(e, NotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    raise HTTPException(status_code=400, detail=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    scheduler = init_scheduler(run_scheduled_coaching)
    yield
    # Shutdown
    if scheduler is not None:
        scheduler.shutdown(wait=False)

app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def read_root():
    return {"message": "Habit insight service"}

# Routine Endpoints
@app.get("/routines", response_model=List[Routine])
async def get_routines():
    return store.fetch_all_routines()

@app.post("/routines", response_model=Routine)
async def create_routine(routine: Routine):
    return store.add_routine(routine)

@app.delete("/routines/{routine_id}")
async def delete_routine(routine_id: str):
    try:
        store.delete_routine(routine_id)
    except StoreError as e:
        raise_for_store_error(e)
    refresh_insights()
    return {"message": "Routine deleted successfully"}

@app.get("/routines/{routine_id}/habits", response_model=List[HabitDefinition])
async def get_routine_habits(routine_id: str):
    try:
        return store.get_habits(routine_id)
    except StoreError as e:
        raise_for_store_error(e)

@app.post("/routines/{routine_id}/habits/move", response_model=List[HabitDefinition])
async def move_routine_habits(routine_id: str, move_request: MoveHabitsRequest):
    try:
        habits = store.move_habits(routine_id, move_request.source, move_request.destination)
    except StoreError as e:
        raise_for_store_error(e)
    refresh_insights()
    return habits

# Group Endpoints
@app.get("/groups", response_model=List[HabitGroup])
async def get_groups():
    return store.habit_groups

@app.post("/groups", response_model=HabitGroup)
async def create_group(group: HabitGroup):
    try:
        return store.add_group(group)
    except StoreError as e:
        raise_for_store_error(e)

# Habit Management Endpoints
@app.get("/habits", response_model=List[HabitDefinition])
async def get_habits():
    return store.habit_definitions

@app.post("/habits", response_model=HabitDefinition)
async def create_habit(habit: HabitCreate):
    definition = HabitDefinition(**habit.model_dump(exclude={"routineId", "groupId"}))
    try:
        created = store.add_habit(definition, habit.routineId, habit.groupId)
    except StoreError as e:
        raise_for_store_error(e)
    refresh_insights()
    return created

@app.put("/habits/{habit_id}", response_model=HabitDefinition)
async def update_habit(habit_id: str, updated_habit: HabitDefinition):
    if updated_habit.id is not None and updated_habit.id != habit_id:
        raise HTTPException(status_code=400, detail="Habit id does not match path")
    try:
        replaced = store.replace_habit(updated_habit.model_copy(update={"id": habit_id}))
    except StoreError as e:
        raise_for_store_error(e)
    refresh_insights()
    return replaced

@app.delete("/habits/{habit_id}")
async def delete_habit(habit_id: str):
    try:
        store.delete_habit(habit_id)
    except StoreError as e:
        raise_for_store_error(e)
    refresh_insights()
    return {"message": "Habit deleted successfully"}

# Daily Log Endpoints
@app.get("/logs", response_model=List[DailyLogEntry])
async def get_logs(dateKey: Optional[str] = None):
    return store.get_log(dateKey)

@app.post("/logs", response_model=DailyLogEntry)
async def save_log_entry(entry: LogEntryUpsert):
    try:
        saved = store.save_daily_log_entry(DailyLogEntry(**entry.model_dump()))
    except StoreError as e:
        raise_for_store_error(e)
    refresh_insights()
    return saved

# Insight Endpoints
@app.get("/insights", response_model=List[HabitInsight])
async def get_insights():
    return engine.insights

@app.get("/insights/prompt", response_class=PlainTextResponse)
async def get_insight_prompt():
    return engine.generate_llm_prompt_data()

@app.post("/insights/coaching", response_model=CoachingSummary)
async def create_coaching_summary():
    return await run_coaching_summary()

@app.get("/insights/coaching/latest", response_model=CoachingSummary)
async def get_latest_coaching_summary():
    if latest_summary is None:
        raise HTTPException(status_code=404, detail="No coaching summary generated yet")
    return latest_summary
