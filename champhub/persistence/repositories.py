"""
Repository interfaces for championship data.
No business logic — only read/write operations.
"""
from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable

from champhub.models import (
    Athlete,
    Championship,
    ChampionshipConfig,
    ChampionshipMatch,
    DEFAULT_PLAN,
    MatchStatus,
    Team,
    TeamSponsor,
    User,
)


def _parse_datetime(s: str | None) -> datetime:
    if s is None:
        raise ValueError("expected datetime string")
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------- UserRepository ----------


class UserRepository:
    """CRUD for users (organizers). Emails are stored lower-cased."""

    _COLS = "id, email, name, password_hash, plan, created_at"

    def create(
        self,
        conn: sqlite3.Connection,
        email: str,
        password_hash: str,
        name: str | None = None,
        plan: str = DEFAULT_PLAN,
        id: str | None = None,
    ) -> User:
        uid = id or str(uuid.uuid4())
        now = _now_iso()
        email = email.strip().lower()
        display_name = name or email.split("@")[0]
        conn.execute(
            "INSERT INTO users (id, email, name, password_hash, plan, created_at) VALUES (?, ?, ?, ?, ?, ?)",
            (uid, email, display_name, password_hash, plan, now),
        )
        conn.commit()
        return User(
            id=uid, email=email, name=display_name, created_at=_parse_datetime(now),
            plan=plan, password_hash=password_hash,
        )

    def get(self, conn: sqlite3.Connection, user_id: str) -> User | None:
        row = conn.execute(f"SELECT {self._COLS} FROM users WHERE id = ?", (user_id,)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, conn: sqlite3.Connection, email: str) -> User | None:
        row = conn.execute(
            f"SELECT {self._COLS} FROM users WHERE email = ?",
            (email.strip().lower(),),
        ).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_plan(self, conn: sqlite3.Connection, user_id: str, plan: str) -> None:
        conn.execute("UPDATE users SET plan = ? WHERE id = ?", (plan, user_id))
        conn.commit()


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        name=row["name"],
        created_at=_parse_datetime(row["created_at"]),
        plan=row["plan"] or DEFAULT_PLAN,
        password_hash=row["password_hash"],
    )


# ---------- ChampionshipRepository ----------


class ChampionshipRepository:
    """CRUD for championships. config is serialized as JSON."""

    _COLS = (
        "id, user_id, name, sport, type, start_date, end_date, location, description, "
        "logo_url, cover_url, config, created_at"
    )
    _EDITABLE = (
        "name", "sport", "type", "start_date", "end_date", "location", "description",
        "logo_url", "cover_url",
    )

    def create(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        fields: dict[str, Any],
        config: ChampionshipConfig,
        id: str | None = None,
    ) -> Championship:
        cid = id or str(uuid.uuid4())
        now = _now_iso()
        conn.execute(
            f"INSERT INTO championships ({self._COLS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                cid,
                user_id,
                fields["name"],
                fields.get("sport") or "Futebol",
                fields.get("type") or "Fase de Grupos + Mata-mata",
                fields.get("start_date"),
                fields.get("end_date"),
                fields.get("location") or "",
                fields.get("description") or "",
                fields.get("logo_url"),
                fields.get("cover_url"),
                json.dumps(config.to_dict()),
                now,
            ),
        )
        conn.commit()
        created = self.get(conn, cid)
        if created is None:
            raise RuntimeError(f"Championship {cid} missing after insert")
        return created

    def get(self, conn: sqlite3.Connection, championship_id: str) -> Championship | None:
        row = conn.execute(
            f"SELECT {self._COLS} FROM championships WHERE id = ?",
            (championship_id,),
        ).fetchone()
        return _row_to_championship(row) if row is not None else None

    def list_by_user(self, conn: sqlite3.Connection, user_id: str) -> list[Championship]:
        """Newest first, as the dashboard lists them."""
        rows = conn.execute(
            f"SELECT {self._COLS} FROM championships WHERE user_id = ? ORDER BY created_at DESC",
            (user_id,),
        ).fetchall()
        return [_row_to_championship(r) for r in rows]

    def update(
        self,
        conn: sqlite3.Connection,
        championship_id: str,
        fields: dict[str, Any],
        config: ChampionshipConfig | None = None,
    ) -> None:
        sets: list[str] = []
        args: list[Any] = []
        for col in self._EDITABLE:
            if col in fields:
                sets.append(f"{col} = ?")
                args.append(fields[col])
        if config is not None:
            sets.append("config = ?")
            args.append(json.dumps(config.to_dict()))
        if not sets:
            return
        args.append(championship_id)
        conn.execute(f"UPDATE championships SET {', '.join(sets)} WHERE id = ?", args)
        conn.commit()

    def delete(self, conn: sqlite3.Connection, championship_id: str) -> None:
        """Matches go first so team deletion never trips the fixture foreign keys."""
        try:
            conn.execute("DELETE FROM matches WHERE championship_id = ?", (championship_id,))
            conn.execute("DELETE FROM championships WHERE id = ?", (championship_id,))
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise


def _row_to_championship(row: sqlite3.Row) -> Championship:
    raw_config = row["config"]
    return Championship(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        sport=row["sport"],
        type=row["type"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        location=row["location"] or "",
        description=row["description"] or "",
        logo_url=row["logo_url"],
        cover_url=row["cover_url"],
        config=ChampionshipConfig.from_dict(json.loads(raw_config) if raw_config else None),
        created_at=_parse_datetime(row["created_at"]),
    )


# ---------- TeamRepository ----------


class TeamRepository:
    """CRUD for teams. No business logic."""

    _COLS = "id, championship_id, user_id, name, coach, contact_phone, logo_url, created_at"

    def create(
        self,
        conn: sqlite3.Connection,
        championship_id: str,
        user_id: str,
        name: str,
        coach: str = "",
        contact_phone: str = "",
        logo_url: str | None = None,
        id: str | None = None,
    ) -> Team:
        tid = id or str(uuid.uuid4())
        now = _now_iso()
        conn.execute(
            f"INSERT INTO teams ({self._COLS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (tid, championship_id, user_id, name, coach, contact_phone, logo_url, now),
        )
        conn.commit()
        return Team(
            id=tid, championship_id=championship_id, user_id=user_id, name=name,
            coach=coach, contact_phone=contact_phone, logo_url=logo_url,
            created_at=_parse_datetime(now),
        )

    def get(self, conn: sqlite3.Connection, team_id: str) -> Team | None:
        row = conn.execute(f"SELECT {self._COLS} FROM teams WHERE id = ?", (team_id,)).fetchone()
        return _row_to_team(row) if row is not None else None

    def list_by_championship(self, conn: sqlite3.Connection, championship_id: str) -> list[Team]:
        """Ordered by name, then id, so the scheduler always sees the same order."""
        rows = conn.execute(
            f"SELECT {self._COLS} FROM teams WHERE championship_id = ? ORDER BY name COLLATE NOCASE, id",
            (championship_id,),
        ).fetchall()
        return [_row_to_team(r) for r in rows]

    def count_by_championship(self, conn: sqlite3.Connection, championship_id: str) -> int:
        row = conn.execute(
            "SELECT COUNT(*) FROM teams WHERE championship_id = ?", (championship_id,)
        ).fetchone()
        return int(row[0])

    def get_by_name(self, conn: sqlite3.Connection, championship_id: str, name: str) -> Team | None:
        """Case-insensitive lookup within one championship."""
        row = conn.execute(
            f"SELECT {self._COLS} FROM teams WHERE championship_id = ? AND lower(name) = lower(?)",
            (championship_id, name.strip()),
        ).fetchone()
        return _row_to_team(row) if row is not None else None

    def delete(self, conn: sqlite3.Connection, team_id: str) -> None:
        conn.execute("DELETE FROM teams WHERE id = ?", (team_id,))
        conn.commit()


def _row_to_team(row: sqlite3.Row) -> Team:
    return Team(
        id=row["id"],
        championship_id=row["championship_id"],
        user_id=row["user_id"],
        name=row["name"],
        coach=row["coach"] or "",
        contact_phone=row["contact_phone"] or "",
        logo_url=row["logo_url"],
        created_at=_parse_datetime(row["created_at"]),
    )


# ---------- SponsorRepository ----------


class SponsorRepository:
    """CRUD for team_sponsors."""

    def create(
        self,
        conn: sqlite3.Connection,
        team_id: str,
        name: str,
        logo_url: str | None = None,
        id: str | None = None,
    ) -> TeamSponsor:
        sid = id or str(uuid.uuid4())
        conn.execute(
            "INSERT INTO team_sponsors (id, team_id, name, logo_url) VALUES (?, ?, ?, ?)",
            (sid, team_id, name, logo_url),
        )
        conn.commit()
        return TeamSponsor(id=sid, team_id=team_id, name=name, logo_url=logo_url)

    def get(self, conn: sqlite3.Connection, sponsor_id: str) -> TeamSponsor | None:
        row = conn.execute(
            "SELECT id, team_id, name, logo_url FROM team_sponsors WHERE id = ?", (sponsor_id,)
        ).fetchone()
        if row is None:
            return None
        return TeamSponsor(id=row["id"], team_id=row["team_id"], name=row["name"], logo_url=row["logo_url"])

    def list_by_team(self, conn: sqlite3.Connection, team_id: str) -> list[TeamSponsor]:
        rows = conn.execute(
            "SELECT id, team_id, name, logo_url FROM team_sponsors WHERE team_id = ? ORDER BY name",
            (team_id,),
        ).fetchall()
        return [
            TeamSponsor(id=r["id"], team_id=r["team_id"], name=r["name"], logo_url=r["logo_url"])
            for r in rows
        ]

    def delete(self, conn: sqlite3.Connection, sponsor_id: str) -> None:
        conn.execute("DELETE FROM team_sponsors WHERE id = ?", (sponsor_id,))
        conn.commit()


# ---------- AthleteRepository ----------


class AthleteRepository:
    """CRUD for athletes."""

    _COLS = "id, team_id, name, shirt_number, position, document, created_at"
    _EDITABLE = ("name", "shirt_number", "position", "document")

    def create(
        self,
        conn: sqlite3.Connection,
        team_id: str,
        name: str,
        shirt_number: int | None = None,
        position: str | None = None,
        document: str | None = None,
        id: str | None = None,
    ) -> Athlete:
        aid = id or str(uuid.uuid4())
        now = _now_iso()
        conn.execute(
            f"INSERT INTO athletes ({self._COLS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (aid, team_id, name, shirt_number, position, document, now),
        )
        conn.commit()
        return Athlete(
            id=aid, team_id=team_id, name=name, shirt_number=shirt_number,
            position=position, document=document, created_at=_parse_datetime(now),
        )

    def get(self, conn: sqlite3.Connection, athlete_id: str) -> Athlete | None:
        row = conn.execute(f"SELECT {self._COLS} FROM athletes WHERE id = ?", (athlete_id,)).fetchone()
        return _row_to_athlete(row) if row is not None else None

    def list_by_team(self, conn: sqlite3.Connection, team_id: str) -> list[Athlete]:
        """Shirt number order; athletes without a number last, by name."""
        rows = conn.execute(
            f"SELECT {self._COLS} FROM athletes WHERE team_id = ? "
            "ORDER BY shirt_number IS NULL, shirt_number, name",
            (team_id,),
        ).fetchall()
        return [_row_to_athlete(r) for r in rows]

    def update(self, conn: sqlite3.Connection, athlete_id: str, fields: dict[str, Any]) -> None:
        sets = [f"{col} = ?" for col in self._EDITABLE if col in fields]
        if not sets:
            return
        args = [fields[col] for col in self._EDITABLE if col in fields]
        args.append(athlete_id)
        conn.execute(f"UPDATE athletes SET {', '.join(sets)} WHERE id = ?", args)
        conn.commit()

    def delete(self, conn: sqlite3.Connection, athlete_id: str) -> None:
        conn.execute("DELETE FROM athletes WHERE id = ?", (athlete_id,))
        conn.commit()


def _row_to_athlete(row: sqlite3.Row) -> Athlete:
    return Athlete(
        id=row["id"],
        team_id=row["team_id"],
        name=row["name"],
        shirt_number=row["shirt_number"],
        position=row["position"],
        document=row["document"],
        created_at=_parse_datetime(row["created_at"]),
    )


# ---------- MatchRepository ----------


class MatchRepository:
    """CRUD for matches (persisted fixtures). No business logic."""

    _COLS = (
        "id, championship_id, round, sequence, home_team_id, away_team_id, "
        "home_score, away_score, status, created_at"
    )

    def get(self, conn: sqlite3.Connection, match_id: str) -> ChampionshipMatch | None:
        row = conn.execute(f"SELECT {self._COLS} FROM matches WHERE id = ?", (match_id,)).fetchone()
        return _row_to_match(row) if row is not None else None

    def list_by_championship(self, conn: sqlite3.Connection, championship_id: str) -> list[ChampionshipMatch]:
        rows = conn.execute(
            f"SELECT {self._COLS} FROM matches WHERE championship_id = ? ORDER BY round, sequence",
            (championship_id,),
        ).fetchall()
        return [_row_to_match(r) for r in rows]

    def count_by_championship(self, conn: sqlite3.Connection, championship_id: str) -> tuple[int, int]:
        """(total fixtures, completed fixtures)."""
        row = conn.execute(
            "SELECT COUNT(*), COALESCE(SUM(CASE WHEN status = ? THEN 1 ELSE 0 END), 0) "
            "FROM matches WHERE championship_id = ?",
            (MatchStatus.COMPLETED.value, championship_id),
        ).fetchone()
        return int(row[0]), int(row[1])

    def count_for_team(self, conn: sqlite3.Connection, team_id: str) -> int:
        row = conn.execute(
            "SELECT COUNT(*) FROM matches WHERE home_team_id = ? OR away_team_id = ?",
            (team_id, team_id),
        ).fetchone()
        return int(row[0])

    def replace_for_championship(
        self,
        conn: sqlite3.Connection,
        championship_id: str,
        rows: Iterable[dict[str, Any]],
    ) -> int:
        """
        Delete every fixture of the championship and insert rows in one transaction.
        rows: {round, sequence, home_team_id, away_team_id}. Returns inserted count.
        Nothing is committed unless every insert succeeds.
        """
        now = _now_iso()
        inserted = 0
        try:
            conn.execute("DELETE FROM matches WHERE championship_id = ?", (championship_id,))
            for r in rows:
                conn.execute(
                    f"INSERT INTO matches ({self._COLS}) VALUES (?, ?, ?, ?, ?, ?, NULL, NULL, ?, ?)",
                    (
                        str(uuid.uuid4()),
                        championship_id,
                        r["round"],
                        r["sequence"],
                        r["home_team_id"],
                        r["away_team_id"],
                        MatchStatus.SCHEDULED.value,
                        now,
                    ),
                )
                inserted += 1
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        return inserted

    def delete_for_championship(self, conn: sqlite3.Connection, championship_id: str) -> int:
        cur = conn.execute("DELETE FROM matches WHERE championship_id = ?", (championship_id,))
        conn.commit()
        return cur.rowcount

    def update_result(
        self, conn: sqlite3.Connection, match_id: str, home_score: int, away_score: int
    ) -> None:
        conn.execute(
            "UPDATE matches SET home_score = ?, away_score = ?, status = ? WHERE id = ?",
            (home_score, away_score, MatchStatus.COMPLETED.value, match_id),
        )
        conn.commit()

    def reset_to_scheduled(self, conn: sqlite3.Connection, match_id: str) -> None:
        """Clear a recorded result. Scores back to NULL."""
        conn.execute(
            "UPDATE matches SET home_score = NULL, away_score = NULL, status = ? WHERE id = ?",
            (MatchStatus.SCHEDULED.value, match_id),
        )
        conn.commit()


def _row_to_match(row: sqlite3.Row) -> ChampionshipMatch:
    return ChampionshipMatch(
        id=row["id"],
        championship_id=row["championship_id"],
        round=row["round"],
        sequence=row["sequence"],
        home_team_id=row["home_team_id"],
        away_team_id=row["away_team_id"],
        home_score=row["home_score"],
        away_score=row["away_score"],
        status=row["status"],
        created_at=_parse_datetime(row["created_at"]),
    )
