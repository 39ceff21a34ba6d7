"""
Storage of the questions chosen for a session.

Records are keyed by session id and expire with the session. Writes only
succeed when no record exists yet, so two invocations racing on the same
session cannot overwrite each other's questions.
"""

import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from fetch_questions.config import StoreConfig, store_config
from fetch_questions.errors import SaveQuestionsError, SavedQuestionsConflictError
from fetch_questions.models import Question, SavedQuestionsState

logger = logging.getLogger(__name__)


class SavedQuestionsStore(Protocol):
    """What the handler needs from a saved questions backend."""

    async def get_existing_saved_item(self, session_id: str) -> Optional[SavedQuestionsState]:
        ...

    async def save_questions(self,
                             session_id: str,
                             session_ttl: int,
                             correlation_id: str,
                             questions: List[Question]) -> bool:
        ...


class InMemorySavedQuestionsStore:

    def __init__(self):
        # session_id -> (expiry epoch seconds, saved state)
        self.items: Dict[str, tuple] = {}

    async def get_existing_saved_item(self, session_id: str) -> Optional[SavedQuestionsState]:
        entry = self.items.get(session_id)
        if entry is None:
            return None

        expiry, state = entry
        if expiry <= time.time():
            del self.items[session_id]
            return None
        return state

    async def save_questions(self,
                             session_id: str,
                             session_ttl: int,
                             correlation_id: str,
                             questions: List[Question]) -> bool:
        if await self.get_existing_saved_item(session_id) is not None:
            raise SavedQuestionsConflictError(f"Questions already saved for session {session_id}")

        self.items[session_id] = (
            session_ttl,
            SavedQuestionsState.from_questions(correlation_id, questions)
        )
        logger.info(f"Saved {len(questions)} questions for session {session_id}")
        return True


class SqliteSavedQuestionsStore:

    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        conn = self._get_conn()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS saved_questions (
                    session_id TEXT PRIMARY KEY,
                    expiry_date INTEGER NOT NULL,
                    correlation_id TEXT NOT NULL,
                    questions TEXT NOT NULL
                )
            """)
            conn.commit()
        finally:
            conn.close()

    async def get_existing_saved_item(self, session_id: str) -> Optional[SavedQuestionsState]:
        try:
            conn = self._get_conn()
            try:
                row = conn.execute(
                    "SELECT * FROM saved_questions WHERE session_id = ? AND expiry_date > ?",
                    (session_id, int(time.time()))
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise SaveQuestionsError(f"Unable to read saved questions: {e}") from e

        if row is None:
            return None

        return SavedQuestionsState.from_dict({
            'correlationId': row['correlation_id'],
            'questions': json.loads(row['questions'])
        })

    async def save_questions(self,
                             session_id: str,
                             session_ttl: int,
                             correlation_id: str,
                             questions: List[Question]) -> bool:
        state = SavedQuestionsState.from_questions(correlation_id, questions)
        serialized = json.dumps([q.to_dict() for q in state.questions])

        try:
            conn = self._get_conn()
            try:
                # Expired rows are replaced, live rows are left alone
                conn.execute(
                    "DELETE FROM saved_questions WHERE session_id = ? AND expiry_date <= ?",
                    (session_id, int(time.time()))
                )
                conn.execute("""
                    INSERT INTO saved_questions (session_id, expiry_date, correlation_id, questions)
                    VALUES (?, ?, ?, ?)
                """, (session_id, session_ttl, correlation_id, serialized))
                conn.commit()
            finally:
                conn.close()
        except sqlite3.IntegrityError as e:
            raise SavedQuestionsConflictError(f"Questions already saved for session {session_id}") from e
        except sqlite3.Error as e:
            raise SaveQuestionsError(f"Unable to save questions: {e}") from e

        logger.info(f"Saved {len(questions)} questions for session {session_id}")
        return True


def build_saved_questions_store(config: Optional[StoreConfig] = None) -> SavedQuestionsStore:
    config = config or store_config
    if config.backend == "sqlite":
        return SqliteSavedQuestionsStore(config.db_path)
    if config.backend == "memory":
        return InMemorySavedQuestionsStore()
    raise ValueError(f"Unknown saved questions store: {config.backend}")
