# ec2_pricing/storage/alert_db.py

"""SQLite-backed store for user price alerts."""

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from ec2_pricing.config.settings import Settings
from ec2_pricing.models.price_alert import PriceAlert
from ec2_pricing.models.price_point import utc_isoformat

logger = logging.getLogger("ec2_pricing.alerts")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS price_alerts (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    instance_type      TEXT    NOT NULL,
    region             TEXT    NOT NULL,
    os                 TEXT    NOT NULL,
    price_type         TEXT    NOT NULL,
    threshold          REAL    NOT NULL,
    email              TEXT    NOT NULL,
    active             INTEGER NOT NULL DEFAULT 1,
    last_notified      TEXT,
    notification_count INTEGER NOT NULL DEFAULT 0,
    created_at         TEXT    NOT NULL,
    updated_at         TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_alerts_lookup
    ON price_alerts(instance_type, region, price_type, active);

CREATE INDEX IF NOT EXISTS idx_alerts_email
    ON price_alerts(email);
"""

_COLUMNS = (
    "id, instance_type, region, os, price_type, threshold, email, "
    "active, last_notified, notification_count, created_at, updated_at"
)


def _parse_ts(raw: object) -> datetime | None:
    return datetime.fromisoformat(str(raw)) if raw else None


def _row_to_alert(row: tuple[object, ...]) -> PriceAlert:
    return PriceAlert(
        id=int(row[0]),  # type: ignore[call-overload]
        instance_type=str(row[1]),
        region=str(row[2]),
        os=str(row[3]),
        price_type=str(row[4]),
        threshold=float(row[5]),  # type: ignore[arg-type]
        email=str(row[6]),
        active=bool(row[7]),
        last_notified=_parse_ts(row[8]),
        notification_count=int(row[9]),  # type: ignore[call-overload]
        created_at=_parse_ts(row[10]),
        updated_at=_parse_ts(row[11]),
    )


class AlertDB:
    """CRUD access to price alerts plus trigger lookup."""

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
        logger.debug("AlertDB opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # ── CRUD ─────────────────────────────────────────────

    def create(
        self,
        instance_type: str,
        region: str,
        os_name: str,
        price_type: str,
        threshold: float,
        email: str,
    ) -> PriceAlert:
        """Insert a new active alert and return it."""
        created = datetime.now(timezone.utc)
        now = utc_isoformat(created)
        cur = self._conn.execute(
            "INSERT INTO price_alerts "
            "(instance_type, region, os, price_type, threshold, email, "
            " active, notification_count, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, 1, 0, ?, ?)",
            (
                instance_type, region, os_name, price_type,
                threshold, email, now, now,
            ),
        )
        self._conn.commit()
        alert_id = int(cur.lastrowid or 0)
        logger.info(
            "Created alert %d for %s %s/%s %s <= %s",
            alert_id,
            email,
            instance_type,
            region,
            price_type,
            threshold,
        )
        return PriceAlert(
            id=alert_id,
            instance_type=instance_type,
            region=region,
            os=os_name,
            price_type=price_type,
            threshold=threshold,
            email=email,
            created_at=created,
            updated_at=created,
        )

    def get(self, alert_id: int) -> PriceAlert | None:
        """Fetch a single alert by id."""
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM price_alerts WHERE id = ?",
            (alert_id,),
        ).fetchone()
        return _row_to_alert(row) if row else None

    def list_by_email(self, email: str) -> list[PriceAlert]:
        """Return every alert registered for ``email``."""
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM price_alerts "
            "WHERE email = ? ORDER BY id",
            (email,),
        ).fetchall()
        return [_row_to_alert(r) for r in rows]

    def update(
        self,
        alert_id: int,
        threshold: float | None = None,
        active: bool | None = None,
    ) -> PriceAlert | None:
        """Change threshold and/or active flag.

        Returns the updated alert, or ``None`` if it does not exist.
        """
        if self.get(alert_id) is None:
            return None

        assignments: list[str] = []
        params: list[object] = []
        if threshold is not None:
            assignments.append("threshold = ?")
            params.append(threshold)
        if active is not None:
            assignments.append("active = ?")
            params.append(1 if active else 0)
        assignments.append("updated_at = ?")
        params.append(utc_isoformat(datetime.now(timezone.utc)))
        params.append(alert_id)

        self._conn.execute(
            f"UPDATE price_alerts SET {', '.join(assignments)} "
            "WHERE id = ?",
            params,
        )
        self._conn.commit()
        return self.get(alert_id)

    def delete(self, alert_id: int) -> bool:
        """Delete an alert.  Returns True if a row was removed."""
        cur = self._conn.execute(
            "DELETE FROM price_alerts WHERE id = ?", (alert_id,),
        )
        self._conn.commit()
        deleted = cur.rowcount > 0
        if deleted:
            logger.info("Deleted alert %d", alert_id)
        return deleted

    # ── Trigger evaluation ───────────────────────────────

    def find_triggered(
        self,
        instance_type: str,
        region: str,
        os_name: str,
        price_type: str,
        current_price: float,
    ) -> list[PriceAlert]:
        """Active alerts whose threshold is at or above the price."""
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM price_alerts "
            "WHERE instance_type = ? AND region = ? AND os = ? "
            "  AND price_type = ? AND active = 1 AND threshold >= ? "
            "ORDER BY id",
            (instance_type, region, os_name, price_type, current_price),
        ).fetchall()
        return [_row_to_alert(r) for r in rows]

    def mark_notified(
        self, alert_id: int, when: datetime,
    ) -> None:
        """Record a sent notification on the alert."""
        stamp = utc_isoformat(when)
        self._conn.execute(
            "UPDATE price_alerts "
            "SET last_notified = ?, "
            "    notification_count = notification_count + 1, "
            "    updated_at = ? "
            "WHERE id = ?",
            (stamp, stamp, alert_id),
        )
        self._conn.commit()
