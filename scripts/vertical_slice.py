#!/usr/bin/env python3
"""
Vertical slice: Create organizer → Championship → Teams → Schedule → Result → Standings.
Run from project root: python3 scripts/vertical_slice.py [team names...]
"""
from __future__ import annotations

import json
import logging
import random
import sys
from pathlib import Path

# Ensure project root on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from champhub.auth import hash_password
from champhub.persistence import init_db, get_connection, UserRepository
from champhub.persistence.db import set_db_path
from champhub.services import ChampionshipService

DEFAULT_TEAMS = ["Leões da Serra", "Unidos do Bairro", "Atlético Vila Nova", "Real Periferia", "Esporte Clube Sol"]


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    # Use data/vertical_slice.db for demo (distinct from app.db)
    db_path = PROJECT_ROOT / "data" / "vertical_slice.db"
    if db_path.exists():
        db_path.unlink()
    set_db_path(db_path)
    init_db(db_path=db_path)

    team_names = sys.argv[1:] or DEFAULT_TEAMS
    service = ChampionshipService()
    conn = get_connection()
    try:
        # 1. Organizer
        user = UserRepository().create(
            conn, "organizer@example.com", hash_password("demo-pass"), name="Demo", plan="Elite"
        )
        print(f"Organizer: {user.email} ({user.plan})")

        # 2. Championship + teams
        champ = service.create_championship(conn, user.id, {"name": "Copa Demo", "location": "Praça Central"})
        for name in team_names:
            service.add_team(conn, user.id, champ.id, name)
        print(f"Championship: {champ.name} with {len(team_names)} teams")

        # 3. Propose, then confirm
        proposal = service.propose_schedule(conn, user.id, champ.id)
        print(f"Proposal {proposal.fingerprint}: {len(proposal.rows)} fixtures over {proposal.rounds} rounds")
        matches = service.confirm_schedule(conn, user.id, champ.id, proposal.fingerprint)

        names = {t.id: t.name for t in service.list_teams(conn, champ.id)}
        for r in range(1, proposal.rounds + 1):
            line = ", ".join(
                f"{names[m.home_team_id]} x {names[m.away_team_id]}" for m in matches if m.round == r
            )
            rest = proposal.resting.get(r)
            suffix = f" | rest: {names[rest]}" if rest else ""
            print(f"  Round {r}: {line}{suffix}")

        # 4. Record first-round results
        rng = random.Random(7)
        for m in matches:
            if m.round == 1:
                service.record_result(conn, user.id, m.id, rng.randint(0, 4), rng.randint(0, 4))

        # 5. Standings
        table = service.standings(conn, champ.id)
        print("Standings:")
        print(json.dumps([row.to_dict() for row in table], indent=2, ensure_ascii=False))
    finally:
        conn.close()

    print("\nVertical slice OK.")


if __name__ == "__main__":
    main()
