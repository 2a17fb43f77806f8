"""Per-user completion tracking on the ``questions`` and ``revision`` tracks.

Completion is stored as membership of the user id in one of two lists on
each question. A caller can only ever read or toggle its own membership.
"""

from __future__ import annotations

import logging
from typing import List

import db
from curriculum import find_level, find_question, load_topic
from errors import InvalidTrack
from schemas import TRACKS, LevelProgress, QuestionProgress, TopicProgress

logger = logging.getLogger(__name__)


def get_progress(caller_id: str) -> List[TopicProgress]:
    """Project every stored question onto the caller's two completion flags."""
    return [
        TopicProgress(
            topicId=topic.id,
            name=topic.name,
            levels=[
                LevelProgress(
                    levelId=level.id,
                    name=level.name,
                    questions=[
                        QuestionProgress(
                            questionId=question.id,
                            name=question.name,
                            completedQuestions=caller_id in question.completed_questions,
                            completedRevision=caller_id in question.completed_revision,
                        )
                        for question in level.questions
                    ],
                )
                for level in topic.levels
            ],
        )
        for topic in db.list_topics()
    ]


def set_progress(
    caller_id: str,
    topic_id: str,
    level_id: str,
    question_id: str,
    track: str,
    completed: bool,
) -> dict[str, str]:
    topic = load_topic(topic_id)
    level = find_level(topic, level_id)
    question = find_question(level, question_id)
    if track not in TRACKS:
        raise InvalidTrack(f"Unknown progress track {track!r}, expected one of: {', '.join(TRACKS)}")

    members = question.members(track)
    if completed:
        if caller_id not in members:
            members.append(caller_id)
    else:
        # Drops every occurrence of the caller.
        members[:] = [member for member in members if member != caller_id]

    db.save_topic(topic)
    logger.debug("User %s marked question %s %s on %s", caller_id, question_id,
                 "complete" if completed else "incomplete", track)
    return {"msg": "Progress updated"}
