"""
One-way status machines for quests, goals and mystery boxes.

Each machine is a table of (state, event) -> next state. Anything missing
from the table is an illegal transition.
"""

from enum import Enum
from typing import Dict, Tuple

from learnquest.exceptions import InvalidTransitionError
from learnquest.models.goal import GoalStatus
from learnquest.models.quest import QuestStatus


class QuestEvent(str, Enum):
    PROGRESS = "progress"
    FINISH = "finish"
    EXPIRE = "expire"


class GoalEvent(str, Enum):
    COMPLETE = "complete"
    FAIL = "fail"
    PAUSE = "pause"
    RESUME = "resume"


class BoxState(str, Enum):
    SEALED = "sealed"
    OPENED = "opened"


class BoxEvent(str, Enum):
    OPEN = "open"


QUEST_TRANSITIONS: Dict[Tuple[QuestStatus, QuestEvent], QuestStatus] = {
    (QuestStatus.ACTIVE, QuestEvent.PROGRESS): QuestStatus.ACTIVE,
    (QuestStatus.ACTIVE, QuestEvent.FINISH): QuestStatus.COMPLETED,
    (QuestStatus.ACTIVE, QuestEvent.EXPIRE): QuestStatus.EXPIRED,
}

GOAL_TRANSITIONS: Dict[Tuple[GoalStatus, GoalEvent], GoalStatus] = {
    (GoalStatus.ACTIVE, GoalEvent.COMPLETE): GoalStatus.COMPLETED,
    (GoalStatus.ACTIVE, GoalEvent.FAIL): GoalStatus.FAILED,
    (GoalStatus.ACTIVE, GoalEvent.PAUSE): GoalStatus.PAUSED,
    (GoalStatus.PAUSED, GoalEvent.RESUME): GoalStatus.ACTIVE,
    (GoalStatus.PAUSED, GoalEvent.FAIL): GoalStatus.FAILED,
}

BOX_TRANSITIONS: Dict[Tuple[BoxState, BoxEvent], BoxState] = {
    (BoxState.SEALED, BoxEvent.OPEN): BoxState.OPENED,
}


def _transition(table: dict, entity: str, state, event):
    next_state = table.get((state, event))
    if next_state is None:
        raise InvalidTransitionError(
            message=f"Cannot apply '{event.value}' to {entity} in state '{state.value}'",
            entity=entity,
            state=state.value,
            event=event.value,
        )
    return next_state


def transition_quest(state: QuestStatus, event: QuestEvent) -> QuestStatus:
    return _transition(QUEST_TRANSITIONS, "quest", QuestStatus(state), QuestEvent(event))


def transition_goal(state: GoalStatus, event: GoalEvent) -> GoalStatus:
    return _transition(GOAL_TRANSITIONS, "goal", GoalStatus(state), GoalEvent(event))


def transition_box(state: BoxState, event: BoxEvent) -> BoxState:
    return _transition(BOX_TRANSITIONS, "mystery_box", BoxState(state), BoxEvent(event))
