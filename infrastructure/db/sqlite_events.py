import sqlite3
from typing import List, Optional

from core.entities.collection_event import CollectionEvent
from core.repositories.event_repository import EventRepository
from infrastructure.db.sqlite import SQLiteRepository, commit, store_errors, utcnow


class SQLiteEventRepository(SQLiteRepository, EventRepository):

    def _row_to_event(self, row: sqlite3.Row) -> CollectionEvent:
        return CollectionEvent(
            id=row["id"],
            title=row["title"],
            location=row["location"],
            date=row["date"],
            time_range=row["time_range"],
            status=row["status"],
            participants=int(row["participants"]),
            waste_small=int(row["waste_small"]),
            waste_medium=int(row["waste_medium"]),
            waste_large=int(row["waste_large"]),
            created_at=row["created_at"],
        )

    @store_errors
    def create_event(self, title: str, location: str, date: str, time_range: Optional[str], status: str,
                     participants: int, waste_small: int, waste_medium: int, waste_large: int) -> CollectionEvent:
        created_at = utcnow()
        cur = self.conn.cursor()
        cur.execute(
            "INSERT INTO collection_events (title, location, date, time_range, status, participants, "
            "waste_small, waste_medium, waste_large, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (title, location, date, time_range, status, int(participants),
             int(waste_small), int(waste_medium), int(waste_large), created_at),
        )
        commit(self.conn)
        return CollectionEvent(id=cur.lastrowid, title=title, location=location, date=date,
                               time_range=time_range, status=status, participants=int(participants),
                               waste_small=int(waste_small), waste_medium=int(waste_medium),
                               waste_large=int(waste_large), created_at=created_at)

    @store_errors
    def get_event(self, event_id: int) -> Optional[CollectionEvent]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM collection_events WHERE id = ?", (int(event_id),))
        row = cur.fetchone()
        return self._row_to_event(row) if row else None

    @store_errors
    def update_event(self, event_id: int, title: str, location: str, date: str, time_range: Optional[str],
                     status: str, participants: int, waste_small: int, waste_medium: int,
                     waste_large: int) -> Optional[CollectionEvent]:
        cur = self.conn.cursor()
        cur.execute(
            "UPDATE collection_events SET title = ?, location = ?, date = ?, time_range = ?, status = ?, "
            "participants = ?, waste_small = ?, waste_medium = ?, waste_large = ? WHERE id = ?",
            (title, location, date, time_range, status, int(participants),
             int(waste_small), int(waste_medium), int(waste_large), int(event_id)),
        )
        updated = cur.rowcount > 0
        commit(self.conn)
        return self.get_event(event_id) if updated else None

    @store_errors
    def delete_event(self, event_id: int) -> bool:
        cur = self.conn.cursor()
        cur.execute("DELETE FROM collection_events WHERE id = ?", (int(event_id),))
        deleted = cur.rowcount > 0
        commit(self.conn)
        return deleted

    @store_errors
    def list_events(self, status: Optional[str] = None) -> List[CollectionEvent]:
        cur = self.conn.cursor()
        if status is None:
            cur.execute("SELECT * FROM collection_events ORDER BY date ASC, id ASC")
        else:
            cur.execute("SELECT * FROM collection_events WHERE status = ? ORDER BY date ASC, id ASC", (status,))
        return [self._row_to_event(r) for r in cur.fetchall()]
