"""
Card stores for neurosched.

Provides persistence for:
- Card scheduling state (FSRS memory model + lifecycle)
- Append-only review log for analytics

Two implementations share the CardStore protocol:
- InMemoryCardStore: dict-backed, for tests and embedding
- SqliteCardStore: portable SQLite file (default ~/.neurosched/state.db)
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable

from loguru import logger

from neurosched.core.clock import ensure_utc
from neurosched.core.models import Card, CardState, ItemDomain, Rating, ReviewLog


class CardStore(Protocol):
    """Where cards live between reviews."""

    def get(self, card_id: str) -> Card | None: ...

    def put(self, card: Card) -> None: ...

    def query_due(self, now: datetime, limit: int | None = None) -> list[Card]: ...


@runtime_checkable
class ReviewLogStore(Protocol):
    """Optional capability: keeps the review audit trail."""

    def append_log(self, review_log: ReviewLog) -> None: ...

    def review_logs(self, card_id: str | None = None) -> list[ReviewLog]: ...

    def record_review(self, card: Card, review_log: ReviewLog) -> None: ...


# =============================================================================
# In-memory store
# =============================================================================


class InMemoryCardStore:
    """Dict-backed store; not shared across processes."""

    def __init__(self, cards: Iterable[Card] = ()):
        self._cards: dict[str, Card] = {card.id: card for card in cards}
        self._logs: list[ReviewLog] = []

    def get(self, card_id: str) -> Card | None:
        return self._cards.get(card_id)

    def put(self, card: Card) -> None:
        self._cards[card.id] = card

    def query_due(self, now: datetime, limit: int | None = None) -> list[Card]:
        due = sorted((c for c in self._cards.values() if c.is_due(now)), key=lambda c: (c.due, c.id))
        return due[:limit] if limit is not None else due

    def all_cards(self) -> list[Card]:
        return sorted(self._cards.values(), key=lambda c: c.id)

    def append_log(self, review_log: ReviewLog) -> None:
        self._logs.append(review_log)

    def record_review(self, card: Card, review_log: ReviewLog) -> None:
        self.put(card)
        self.append_log(review_log)

    def review_logs(self, card_id: str | None = None) -> list[ReviewLog]:
        return [log for log in self._logs if card_id is None or log.card_id == card_id]

    def __len__(self) -> int:
        return len(self._cards)


# =============================================================================
# SQLite store
# =============================================================================


def _timestamp(value: datetime | None) -> str | None:
    # Fixed-width UTC text so lexical order matches chronological order
    if value is None:
        return None
    return ensure_utc(value).isoformat(timespec="microseconds")


class SqliteCardStore:
    """
    SQLite-backed persistence for cards and their review log.

    Timestamps are stored as fixed-width ISO-8601 UTC text, so due-date
    queries compare them directly.
    """

    DEFAULT_DB_PATH = Path.home() / ".neurosched" / "state.db"

    def __init__(self, db_path: Path | str | None = None):
        """
        Initialize the store.

        Args:
            db_path: Custom database path (defaults to ~/.neurosched/state.db)
        """
        self.db_path = Path(db_path) if db_path is not None else self.DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn: sqlite3.Connection | None = None
        self._init_schema()

        logger.info("SqliteCardStore initialized at {}", self.db_path)

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_schema(self) -> None:
        cursor = self.conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS cards (
                id TEXT PRIMARY KEY,
                due TEXT NOT NULL,
                state TEXT NOT NULL DEFAULT 'new',
                stability REAL NOT NULL DEFAULT 1.0,
                difficulty REAL NOT NULL DEFAULT 5.0,
                last_review TEXT,
                elapsed_days INTEGER NOT NULL DEFAULT 0,
                scheduled_days INTEGER NOT NULL DEFAULT 0,
                reps INTEGER NOT NULL DEFAULT 0,
                lapses INTEGER NOT NULL DEFAULT 0,
                domain TEXT NOT NULL DEFAULT 'flashcard',
                topic TEXT
            )
        """)

        # Append-only; rows are never updated
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS review_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                card_id TEXT NOT NULL,
                rating INTEGER NOT NULL,
                reviewed_at TEXT NOT NULL,
                state_before TEXT NOT NULL,
                state_after TEXT NOT NULL,
                elapsed_days INTEGER NOT NULL,
                scheduled_days INTEGER NOT NULL,
                interval_days INTEGER NOT NULL,
                stability_before REAL NOT NULL,
                stability_after REAL NOT NULL,
                difficulty_before REAL NOT NULL,
                difficulty_after REAL NOT NULL,
                domain TEXT NOT NULL,
                FOREIGN KEY (card_id) REFERENCES cards(id)
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_cards_due ON cards(due)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_review_log_card ON review_log(card_id)")

        self.conn.commit()

    # =========================================================================
    # Card Operations
    # =========================================================================

    def get(self, card_id: str) -> Card | None:
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM cards WHERE id = ?", (card_id,))
        row = cursor.fetchone()
        return self._row_to_card(row) if row is not None else None

    def put(self, card: Card) -> None:
        """Insert or replace a card's scheduling state."""
        self._write_card(self.conn.cursor(), card)
        self.conn.commit()

    def record_review(self, card: Card, review_log: ReviewLog) -> None:
        """Store the reviewed card and its log entry in one transaction."""
        with self.conn:
            cursor = self.conn.cursor()
            self._write_card(cursor, card)
            self._write_log(cursor, review_log)

    @staticmethod
    def _write_card(cursor: sqlite3.Cursor, card: Card) -> None:
        cursor.execute(
            """
            INSERT INTO cards (
                id, due, state, stability, difficulty, last_review,
                elapsed_days, scheduled_days, reps, lapses, domain, topic
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                due = excluded.due,
                state = excluded.state,
                stability = excluded.stability,
                difficulty = excluded.difficulty,
                last_review = excluded.last_review,
                elapsed_days = excluded.elapsed_days,
                scheduled_days = excluded.scheduled_days,
                reps = excluded.reps,
                lapses = excluded.lapses,
                domain = excluded.domain,
                topic = excluded.topic
        """,
            (
                card.id,
                _timestamp(card.due),
                card.state.value,
                card.stability,
                card.difficulty,
                _timestamp(card.last_review),
                card.elapsed_days,
                card.scheduled_days,
                card.reps,
                card.lapses,
                card.domain.value,
                card.topic,
            ),
        )

    def query_due(self, now: datetime, limit: int | None = None) -> list[Card]:
        """
        Cards due at `now`.

        Args:
            now: Reference instant
            limit: Maximum cards to return (all when None)

        Returns:
            Cards ordered by due date, then id
        """
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT * FROM cards
            WHERE due <= ?
            ORDER BY due ASC, id ASC
            LIMIT ?
        """,
            (_timestamp(now), -1 if limit is None else limit),
        )
        return [self._row_to_card(row) for row in cursor.fetchall()]

    def all_cards(self) -> list[Card]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM cards ORDER BY id")
        return [self._row_to_card(row) for row in cursor.fetchall()]

    def count_due(self, now: datetime) -> int:
        cursor = self.conn.cursor()
        cursor.execute("SELECT COUNT(*) AS cnt FROM cards WHERE due <= ?", (_timestamp(now),))
        return cursor.fetchone()["cnt"]

    def __len__(self) -> int:
        cursor = self.conn.cursor()
        cursor.execute("SELECT COUNT(*) AS cnt FROM cards")
        return cursor.fetchone()["cnt"]

    # =========================================================================
    # Review Log Operations
    # =========================================================================

    def append_log(self, review_log: ReviewLog) -> None:
        self._write_log(self.conn.cursor(), review_log)
        self.conn.commit()

    @staticmethod
    def _write_log(cursor: sqlite3.Cursor, review_log: ReviewLog) -> None:
        cursor.execute(
            """
            INSERT INTO review_log (
                card_id, rating, reviewed_at, state_before, state_after,
                elapsed_days, scheduled_days, interval_days,
                stability_before, stability_after,
                difficulty_before, difficulty_after, domain
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
            (
                review_log.card_id,
                int(review_log.rating),
                _timestamp(review_log.reviewed_at),
                review_log.state_before.value,
                review_log.state_after.value,
                review_log.elapsed_days,
                review_log.scheduled_days,
                review_log.interval_days,
                review_log.stability_before,
                review_log.stability_after,
                review_log.difficulty_before,
                review_log.difficulty_after,
                review_log.domain.value,
            ),
        )

    def review_logs(self, card_id: str | None = None) -> list[ReviewLog]:
        """Review history, oldest first (optionally for one card)."""
        cursor = self.conn.cursor()
        if card_id is None:
            cursor.execute("SELECT * FROM review_log ORDER BY reviewed_at ASC, id ASC")
        else:
            cursor.execute(
                "SELECT * FROM review_log WHERE card_id = ? ORDER BY reviewed_at ASC, id ASC",
                (card_id,),
            )
        return [self._row_to_log(row) for row in cursor.fetchall()]

    # =========================================================================
    # Row mapping
    # =========================================================================

    @staticmethod
    def _row_to_card(row: sqlite3.Row) -> Card:
        return Card(
            id=row["id"],
            due=datetime.fromisoformat(row["due"]),
            state=CardState(row["state"]),
            stability=row["stability"],
            difficulty=row["difficulty"],
            last_review=datetime.fromisoformat(row["last_review"]) if row["last_review"] else None,
            elapsed_days=row["elapsed_days"],
            scheduled_days=row["scheduled_days"],
            reps=row["reps"],
            lapses=row["lapses"],
            domain=ItemDomain(row["domain"]),
            topic=row["topic"],
        )

    @staticmethod
    def _row_to_log(row: sqlite3.Row) -> ReviewLog:
        return ReviewLog(
            card_id=row["card_id"],
            rating=Rating(row["rating"]),
            reviewed_at=datetime.fromisoformat(row["reviewed_at"]),
            state_before=CardState(row["state_before"]),
            state_after=CardState(row["state_after"]),
            elapsed_days=row["elapsed_days"],
            scheduled_days=row["scheduled_days"],
            interval_days=row["interval_days"],
            stability_before=row["stability_before"],
            stability_after=row["stability_after"],
            difficulty_before=row["difficulty_before"],
            difficulty_after=row["difficulty_after"],
            domain=ItemDomain(row["domain"]),
        )

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> SqliteCardStore:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
