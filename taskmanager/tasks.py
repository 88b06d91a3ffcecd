from sqlalchemy.orm import Session as DBSession

from .models import Priority, Task

# Largest value SQLite (and a BIGINT key) can bind
MAX_ROW_ID = 2**63 - 1


def create_task(
    db: DBSession,
    user_id: int,
    title: str,
    description: str = "",
    priority: Priority = Priority.MEDIUM,
) -> Task:
    task = Task(user_id=user_id, title=title, description=description or "", priority=priority)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def list_tasks(db: DBSession, user_id: int) -> list[Task]:
    """All tasks owned by ``user_id``, newest first."""
    return (
        db.query(Task)
        .filter(Task.user_id == user_id)
        .order_by(Task.created_at.desc(), Task.id.desc())
        .all()
    )


def _owned_task(db: DBSession, task_id: int, user_id: int):
    if not 0 < task_id <= MAX_ROW_ID:
        return None
    return db.query(Task).filter(Task.id == task_id, Task.user_id == user_id).first()


def set_task_completion(db: DBSession, task_id: int, user_id: int, completed: bool) -> bool:
    task = _owned_task(db, task_id, user_id)
    if task is None:
        return False
    task.completed = completed
    db.commit()
    return True


def delete_task(db: DBSession, task_id: int, user_id: int) -> bool:
    task = _owned_task(db, task_id, user_id)
    if task is None:
        return False
    db.delete(task)
    db.commit()
    return True
