from __future__ import annotations

from typing import Iterable

from my_todo.constants import PERCENT_PER_TASK, TASKS_PER_LEVEL
from my_todo.models import Effect, EffectKind, LevelInfo, TodoItem

# Evaluated top-down; the first tier whose minimum level is reached wins.
# TODO: give level 10+ its own title once the next tier is named; it currently
# shares the level 5 title.
TITLE_TIERS: tuple[tuple[int, str, str], ...] = (
    (10, "タスクマスター", "Task Master"),
    (5, "タスクマスター", "Task Master"),
    (3, "頑張り屋さん", "Go-Getter"),
    (2, "駆け出し冒険者", "Rookie Adventurer"),
    (1, "見習い", "Apprentice"),
)


def count_completed(todos: Iterable[TodoItem]) -> int:
    return sum(1 for todo in todos if todo.completed)


def title_for_level(level: int) -> tuple[str, str]:
    for minimum_level, title, title_en in TITLE_TIERS:
        if level >= minimum_level:
            return title, title_en
    _, title, title_en = TITLE_TIERS[-1]
    return title, title_en


def compute_level(completed_count: int) -> LevelInfo:
    """Derive level, title and progress towards the next level.

    Every ``TASKS_PER_LEVEL`` completions raise the level by one, and progress
    moves in steps of ``PERCENT_PER_TASK`` percent, so it always stays below 100.
    """

    count = max(0, int(completed_count))
    level = count // TASKS_PER_LEVEL + 1
    title, title_en = title_for_level(level)
    return LevelInfo(
        completed_count=count,
        level=level,
        title=title,
        title_en=title_en,
        progress_percent=(count % TASKS_PER_LEVEL) * PERCENT_PER_TASK,
    )


def celebration_effects(todo: TodoItem, *, before: LevelInfo, after: LevelInfo) -> list[Effect]:
    """Effects for a task the current session just moved from open to done."""

    effects = [
        Effect(kind=EffectKind.CONFETTI),
        Effect(kind=EffectKind.SOUND),
        Effect(
            kind=EffectKind.TOAST,
            icon="🎉",
            message=(f"「{todo.text}」を完了しました！", f"Completed '{todo.text}'!"),
        ),
    ]

    if after.level > before.level:
        effects.append(
            Effect(
                kind=EffectKind.TOAST,
                icon="🏆",
                message=(
                    f"レベルアップ！ Lv.{after.level}「{after.title}」になりました。",
                    f"Level up! You reached level {after.level}: {after.title_en}.",
                ),
            )
        )

    effects.append(Effect(kind=EffectKind.PRAISE, task_text=todo.text, level_title=after.title))
    return effects


__all__ = [
    "TITLE_TIERS",
    "celebration_effects",
    "compute_level",
    "count_completed",
    "title_for_level",
]
