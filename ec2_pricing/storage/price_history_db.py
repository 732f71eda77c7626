# ec2_pricing/storage/price_history_db.py

"""SQLite-backed price history store for EC2 price tracking."""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from ec2_pricing.config.settings import Settings
from ec2_pricing.models.price_point import (
    PriceHistoryPoint,
    utc_isoformat,
)

logger = logging.getLogger("ec2_pricing.price_history")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS price_history (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    instance_type TEXT    NOT NULL,
    region        TEXT    NOT NULL,
    os            TEXT    NOT NULL,
    price_type    TEXT    NOT NULL,
    price         REAL    NOT NULL,
    timestamp     TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_history_type_region_kind_ts
    ON price_history(instance_type, region, price_type, timestamp);
"""


def _row_to_point(row: tuple[object, ...]) -> PriceHistoryPoint:
    return PriceHistoryPoint(
        instance_type=str(row[0]),
        region=str(row[1]),
        os=str(row[2]),
        price_type=str(row[3]),
        price=float(row[4]),  # type: ignore[arg-type]
        timestamp=datetime.fromisoformat(str(row[5])),
    )


class PriceHistoryDB:
    """Append-only SQLite store of EC2 price points."""

    def __init__(
        self, db_path: Path | None = None,
    ) -> None:
        path = db_path or Settings.DATABASE_PATH
        if str(path) != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        logger.debug(
            "PriceHistoryDB opened at %s", path,
        )

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # ── Recording ────────────────────────────────────────

    def record_points(
        self, points: list[PriceHistoryPoint],
    ) -> int:
        """Append price points.  Returns the number inserted.

        Points with a non-positive price are skipped.
        """
        rows = [
            (
                p.instance_type,
                p.region,
                p.os,
                p.price_type,
                p.price,
                utc_isoformat(p.timestamp),
            )
            for p in points
            if p.price > 0
        ]
        if not rows:
            return 0

        self._conn.executemany(
            "INSERT INTO price_history "
            "(instance_type, region, os, price_type, price, timestamp) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            rows,
        )
        self._conn.commit()
        logger.info("Recorded %d price points", len(rows))
        return len(rows)

    # ── Querying ─────────────────────────────────────────

    def query(
        self,
        instance_type: str,
        region: str,
        os_name: str,
        since: datetime,
    ) -> list[PriceHistoryPoint]:
        """Return points at or after ``since``, oldest first."""
        rows = self._conn.execute(
            "SELECT instance_type, region, os, price_type, price, "
            "       timestamp "
            "FROM price_history "
            "WHERE instance_type = ? AND region = ? AND os = ? "
            "  AND timestamp >= ? "
            "ORDER BY timestamp ASC, id ASC",
            (instance_type, region, os_name, utc_isoformat(since)),
        ).fetchall()
        return [_row_to_point(r) for r in rows]

    def get_latest_price(
        self,
        instance_type: str,
        region: str,
        price_type: str,
        os_name: str | None = None,
    ) -> PriceHistoryPoint | None:
        """Return the newest point for a type/region/price kind."""
        sql = (
            "SELECT instance_type, region, os, price_type, price, "
            "       timestamp "
            "FROM price_history "
            "WHERE instance_type = ? AND region = ? AND price_type = ? "
        )
        params: list[object] = [instance_type, region, price_type]
        if os_name is not None:
            sql += "AND os = ? "
            params.append(os_name)
        sql += "ORDER BY timestamp DESC, id DESC LIMIT 1"
        row = self._conn.execute(sql, params).fetchone()
        return _row_to_point(row) if row else None

    def get_trend_summary(
        self,
        instance_type: str,
        region: str,
        os_name: str,
        price_type: str,
    ) -> dict[str, object] | None:
        """Compute min / max / avg / latest price for one series."""
        row = self._conn.execute(
            "SELECT MIN(price), MAX(price), AVG(price), COUNT(id) "
            "FROM price_history "
            "WHERE instance_type = ? AND region = ? AND os = ? "
            "  AND price_type = ?",
            (instance_type, region, os_name, price_type),
        ).fetchone()
        if row is None or row[3] == 0:
            return None
        latest = self.get_latest_price(
            instance_type, region, price_type, os_name,
        )
        return {
            "min": row[0],
            "max": row[1],
            "avg": round(row[2], 6),
            "count": row[3],
            "latest": latest.price if latest else 0.0,
        }
