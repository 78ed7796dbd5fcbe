import pandas as pd
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.tasks import Task as TaskModel, TaskStatus

TASK_COLUMNS = ["id", "name", "status", "percent_done", "budget", "start_date", "end_date"]


async def get_task_dataframe(db: AsyncSession, project_id: str) -> pd.DataFrame:
    result = await db.execute(
        select(
            TaskModel.id, TaskModel.name, TaskModel.status, TaskModel.percent_done,
            TaskModel.budget, TaskModel.start_date, TaskModel.end_date
        ).filter(TaskModel.project_id == project_id)
    )
    rows = result.all()

    if not rows:
        return pd.DataFrame(columns=TASK_COLUMNS)

    return pd.DataFrame([row._asdict() for row in rows], columns=TASK_COLUMNS)


def finance_summary(df: pd.DataFrame) -> dict:
    """
    Earned-value roll-up of a project's task budgets.
    Tasks without a budget count as zero.
    """
    budget = pd.to_numeric(df["budget"], errors="coerce").fillna(0.0)
    percent = pd.to_numeric(df["percent_done"], errors="coerce").fillna(0.0)

    total_budget = float(budget.sum())
    earned = float((budget * percent / 100).sum())
    percent_complete = (earned / total_budget * 100) if total_budget > 0 else 0.0

    counts = df["status"].value_counts()
    status_counts = {status.value: int(counts.get(status.value, 0)) for status in TaskStatus}

    return {
        "budget": round(total_budget, 2),
        "earned": round(earned, 2),
        "percent_complete": round(percent_complete, 2),
        "remaining": round(total_budget - earned, 2),
        "task_count": int(len(df)),
        "status_counts": status_counts,
    }
