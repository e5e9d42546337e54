"""
SQLite schema for championship entities.
Migration-friendly: each table created with IF NOT EXISTS.
Child rows cascade when their championship or team is deleted.
"""
from __future__ import annotations


def users_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL,
        name TEXT NOT NULL,
        password_hash TEXT NOT NULL,
        plan TEXT NOT NULL DEFAULT 'Starter',
        created_at TEXT NOT NULL
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ix_users_email ON users(email);
    """


def championships_schema() -> str:
    """config is a JSON object (rules, scoring, contacts, visibility toggles)."""
    return """
    CREATE TABLE IF NOT EXISTS championships (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        sport TEXT NOT NULL,
        type TEXT NOT NULL,
        start_date TEXT,
        end_date TEXT,
        location TEXT NOT NULL DEFAULT '',
        description TEXT NOT NULL DEFAULT '',
        logo_url TEXT,
        cover_url TEXT,
        config TEXT NOT NULL DEFAULT '{}',
        created_at TEXT NOT NULL,
        FOREIGN KEY (user_id) REFERENCES users(id)
    );
    CREATE INDEX IF NOT EXISTS ix_championships_user ON championships(user_id);
    """


def teams_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS teams (
        id TEXT PRIMARY KEY,
        championship_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        coach TEXT NOT NULL DEFAULT '',
        contact_phone TEXT NOT NULL DEFAULT '',
        logo_url TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (championship_id) REFERENCES championships(id) ON DELETE CASCADE,
        FOREIGN KEY (user_id) REFERENCES users(id)
    );
    CREATE INDEX IF NOT EXISTS ix_teams_championship ON teams(championship_id);
    """


def team_sponsors_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS team_sponsors (
        id TEXT PRIMARY KEY,
        team_id TEXT NOT NULL,
        name TEXT NOT NULL,
        logo_url TEXT,
        FOREIGN KEY (team_id) REFERENCES teams(id) ON DELETE CASCADE
    );
    CREATE INDEX IF NOT EXISTS ix_team_sponsors_team ON team_sponsors(team_id);
    """


def athletes_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS athletes (
        id TEXT PRIMARY KEY,
        team_id TEXT NOT NULL,
        name TEXT NOT NULL,
        shirt_number INTEGER,
        position TEXT,
        document TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (team_id) REFERENCES teams(id) ON DELETE CASCADE
    );
    CREATE INDEX IF NOT EXISTS ix_athletes_team ON athletes(team_id);
    """


def matches_schema() -> str:
    """Round-robin fixtures. sequence is the 1-based position within the round; scores NULL until a result is recorded."""
    return """
    CREATE TABLE IF NOT EXISTS matches (
        id TEXT PRIMARY KEY,
        championship_id TEXT NOT NULL,
        round INTEGER NOT NULL,
        sequence INTEGER NOT NULL DEFAULT 1,
        home_team_id TEXT NOT NULL,
        away_team_id TEXT NOT NULL,
        home_score INTEGER,
        away_score INTEGER,
        status TEXT NOT NULL DEFAULT 'scheduled',
        created_at TEXT NOT NULL,
        FOREIGN KEY (championship_id) REFERENCES championships(id) ON DELETE CASCADE,
        FOREIGN KEY (home_team_id) REFERENCES teams(id),
        FOREIGN KEY (away_team_id) REFERENCES teams(id)
    );
    CREATE INDEX IF NOT EXISTS ix_matches_championship ON matches(championship_id);
    CREATE INDEX IF NOT EXISTS ix_matches_home ON matches(home_team_id);
    CREATE INDEX IF NOT EXISTS ix_matches_away ON matches(away_team_id);
    """


def all_schema_sql() -> str:
    """Combine all schema DDL for a single execution. Order: users, championships, teams, team_sponsors, athletes, matches."""
    return "\n".join([
        users_schema(),
        championships_schema(),
        teams_schema(),
        team_sponsors_schema(),
        athletes_schema(),
        matches_schema(),
    ])
