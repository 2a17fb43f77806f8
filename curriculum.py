"""Admin-only editing of the topic → level → question hierarchy.

Every mutation loads one topic aggregate, edits it in memory and writes the
whole document back through :func:`db.save_topic`. Levels and questions are
only reachable through their parent chain.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

import db
from auth import is_admin
from errors import Forbidden, NotFound
from schemas import Level, Question, Topic

logger = logging.getLogger(__name__)


# ---------- resolution helpers ----------
def load_topic(topic_id: str) -> Topic:
    topic = db.get_topic(topic_id)
    if topic is None:
        raise NotFound("Topic not found")
    return topic


def find_level(topic: Topic, level_id: str) -> Level:
    for level in topic.levels:
        if level.id == level_id:
            return level
    raise NotFound("Level not found")


def find_question(level: Level, question_id: str) -> Question:
    for question in level.questions:
        if question.id == question_id:
            return question
    raise NotFound("Question not found")


def _require_admin(caller: Mapping[str, Any]) -> None:
    if not is_admin(caller):
        logger.warning("User %s attempted a hierarchy mutation without admin role", caller.get("id"))
        raise Forbidden()


def _new_name(name: Optional[str], current: str) -> str:
    if name is None or not name.strip():
        return current
    return name.strip()


# ---------- topics ----------
def list_topics() -> List[Topic]:
    return db.list_topics()


def create_topic(caller: Mapping[str, Any], name: str) -> Topic:
    _require_admin(caller)
    topic = db.insert_topic(Topic(name=name, levels=[], assignments=[]))
    logger.info("Topic %s (%s) created", topic.id, topic.name)
    return topic


def rename_topic(caller: Mapping[str, Any], topic_id: str, name: Optional[str]) -> Topic:
    _require_admin(caller)
    topic = load_topic(topic_id)
    topic.name = _new_name(name, topic.name)
    return db.save_topic(topic)


def delete_topic(caller: Mapping[str, Any], topic_id: str) -> dict[str, str]:
    _require_admin(caller)
    if not db.delete_topic(topic_id):
        raise NotFound("Topic not found")
    logger.info("Topic %s deleted", topic_id)
    return {"msg": "Topic deleted"}


# ---------- levels ----------
def add_level(caller: Mapping[str, Any], topic_id: str, name: str) -> Topic:
    _require_admin(caller)
    topic = load_topic(topic_id)
    topic.levels.append(Level(name=name, questions=[]))
    return db.save_topic(topic)


def rename_level(caller: Mapping[str, Any], topic_id: str, level_id: str, name: Optional[str]) -> Topic:
    _require_admin(caller)
    topic = load_topic(topic_id)
    level = find_level(topic, level_id)
    level.name = _new_name(name, level.name)
    return db.save_topic(topic)


def delete_level(caller: Mapping[str, Any], topic_id: str, level_id: str) -> Topic:
    _require_admin(caller)
    topic = load_topic(topic_id)
    level = find_level(topic, level_id)
    topic.levels = [existing for existing in topic.levels if existing.id != level.id]
    return db.save_topic(topic)


# ---------- questions ----------
def add_question(caller: Mapping[str, Any], topic_id: str, level_id: str, name: str) -> Level:
    _require_admin(caller)
    topic = load_topic(topic_id)
    level = find_level(topic, level_id)
    level.questions.append(Question(name=name))
    db.save_topic(topic)
    return level


def rename_question(
    caller: Mapping[str, Any],
    topic_id: str,
    level_id: str,
    question_id: str,
    name: Optional[str],
) -> Level:
    _require_admin(caller)
    topic = load_topic(topic_id)
    level = find_level(topic, level_id)
    question = find_question(level, question_id)
    question.name = _new_name(name, question.name)
    db.save_topic(topic)
    return level


def delete_question(caller: Mapping[str, Any], topic_id: str, level_id: str, question_id: str) -> Level:
    _require_admin(caller)
    topic = load_topic(topic_id)
    level = find_level(topic, level_id)
    question = find_question(level, question_id)
    level.questions = [existing for existing in level.questions if existing.id != question.id]
    db.save_topic(topic)
    return level
