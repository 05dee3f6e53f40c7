import sqlite3
from typing import Dict, List, Optional

from core.entities.waste_report import WasteReport
from core.repositories.report_repository import ReportRepository
from infrastructure.db.sqlite import SQLiteRepository, commit, store_errors, utcnow


class SQLiteReportRepository(SQLiteRepository, ReportRepository):

    def _row_to_report(self, row: sqlite3.Row) -> WasteReport:
        return WasteReport(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            description=row["description"],
            location=row["location"],
            waste_size=row["waste_size"],
            status=row["status"],
            created_at=row["created_at"],
        )

    @store_errors
    def create_report(self, user_id: int, title: str, description: Optional[str],
                      location: Optional[str], waste_size: str) -> WasteReport:
        created_at = utcnow()
        cur = self.conn.cursor()
        cur.execute(
            "INSERT INTO waste_reports (user_id, title, description, location, waste_size, status, created_at) "
            "VALUES (?, ?, ?, ?, ?, 'pending', ?)",
            (int(user_id), title, description, location, waste_size, created_at),
        )
        commit(self.conn)
        return WasteReport(id=cur.lastrowid, user_id=user_id, title=title, description=description,
                           location=location, waste_size=waste_size, status="pending", created_at=created_at)

    @store_errors
    def get_report(self, report_id: int) -> Optional[WasteReport]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM waste_reports WHERE id = ?", (int(report_id),))
        row = cur.fetchone()
        return self._row_to_report(row) if row else None

    @store_errors
    def update_status(self, report_id: int, status: str) -> WasteReport:
        cur = self.conn.cursor()
        cur.execute("UPDATE waste_reports SET status = ? WHERE id = ?", (status, int(report_id)))
        if cur.rowcount == 0:
            raise ValueError("Report not found")
        commit(self.conn)
        report = self.get_report(report_id)
        assert report is not None
        return report

    @store_errors
    def list_reports(self, user_id: Optional[int] = None, status: Optional[str] = None,
                     limit: int = 100, offset: int = 0) -> List[WasteReport]:
        query = "SELECT * FROM waste_reports"
        clauses, params = [], []
        if user_id is not None:
            clauses.append("user_id = ?")
            params.append(int(user_id))
        if status is not None:
            clauses.append("status = ?")
            params.append(status)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY id DESC LIMIT ? OFFSET ?"
        params.extend([int(limit), int(offset)])
        cur = self.conn.cursor()
        cur.execute(query, params)
        return [self._row_to_report(r) for r in cur.fetchall()]

    @store_errors
    def count_by_user(self, status: str) -> Dict[int, int]:
        cur = self.conn.cursor()
        cur.execute("SELECT user_id, COUNT(*) FROM waste_reports WHERE status = ? GROUP BY user_id", (status,))
        return {int(user_id): int(count) for user_id, count in cur.fetchall()}
