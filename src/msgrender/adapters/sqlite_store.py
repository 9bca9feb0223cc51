"""SQLite message store adapter.

Implements the RenderStorePort using a simple SQLite database, keeping the
precomputed render fields next to the raw body they were derived from.
"""

from __future__ import annotations

import sqlite3
from typing import Optional

from msgrender.core.models import PrecomputedRender, RenderKind, StoredMessage


class SQLiteRenderStore:
    """Thin SQLite wrapper that satisfies the RenderStorePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the messages table if it does not exist."""

        with self._connect() as conn:
            # Render columns are nullable: a message stored before it was
            # classified simply has no render yet and is re-derived on display.
            # Fields:
            # - message_id: opaque id from the messaging layer (PRIMARY KEY)
            # - body: raw markup as received or sent
            # - incoming: 1 for received, 0 for sent
            # - contains_markup / render_kind / render_version /
            #   render_plain_text / render_payload: PrecomputedRender fields
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS messages (
                    message_id TEXT PRIMARY KEY,
                    body TEXT NOT NULL,
                    incoming INTEGER NOT NULL,
                    contains_markup INTEGER,
                    render_kind INTEGER,
                    render_version INTEGER,
                    render_plain_text TEXT,
                    render_payload BLOB
                )
                """
            )

    @staticmethod
    def _render_columns(render: Optional[PrecomputedRender]) -> tuple:
        if render is None:
            return (None, None, None, None, None)
        return (
            int(render.contains_markup),
            int(render.kind),
            render.version,
            render.plain_text,
            render.payload,
        )

    def save_message(
        self,
        message_id: str,
        body: str,
        incoming: bool,
        render: Optional[PrecomputedRender],
    ) -> None:
        """Upsert a message together with its render fields."""

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO messages (
                    message_id,
                    body,
                    incoming,
                    contains_markup,
                    render_kind,
                    render_version,
                    render_plain_text,
                    render_payload
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(message_id) DO UPDATE SET
                    body = excluded.body,
                    incoming = excluded.incoming,
                    contains_markup = excluded.contains_markup,
                    render_kind = excluded.render_kind,
                    render_version = excluded.render_version,
                    render_plain_text = excluded.render_plain_text,
                    render_payload = excluded.render_payload
                """,
                (message_id, body, int(incoming), *self._render_columns(render)),
            )

    def save_render(self, message_id: str, render: PrecomputedRender) -> None:
        """Overwrite only the render fields of an existing message."""

        with self._connect() as conn:
            conn.execute(
                """
                UPDATE messages SET
                    contains_markup = ?,
                    render_kind = ?,
                    render_version = ?,
                    render_plain_text = ?,
                    render_payload = ?
                WHERE message_id = ?
                """,
                (*self._render_columns(render), message_id),
            )

    def load_message(self, message_id: str) -> Optional[StoredMessage]:
        """Return the stored message, or None if the id is unknown."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM messages WHERE message_id = ?",
                (message_id,),
            ).fetchone()
        if row is None:
            return None

        render = None
        if row["render_kind"] is not None:
            payload = row["render_payload"]
            render = PrecomputedRender(
                contains_markup=bool(row["contains_markup"]),
                kind=RenderKind.from_label(row["render_kind"]),
                version=int(row["render_version"] or 0),
                plain_text=row["render_plain_text"] or "",
                payload=bytes(payload) if payload is not None else None,
            )

        return StoredMessage(
            message_id=row["message_id"],
            body=row["body"],
            incoming=bool(row["incoming"]),
            render=render,
        )

    def list_stale(self, version: int) -> list[str]:
        """Return ids whose render is missing or older than version."""

        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT message_id FROM messages
                WHERE render_kind IS NULL
                   OR render_version IS NULL
                   OR render_version < ?
                ORDER BY message_id
                """,
                (version,),
            ).fetchall()
        return [row["message_id"] for row in rows]
