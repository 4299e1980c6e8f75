from __future__ import annotations

import sys
from datetime import datetime

from .database import Base, engine, session_scope
from .models import Participant
from .store import ensure_tournament


DEMO_TOURNAMENT_ID = "demo"

# (id, name, seat, transaction, owed, paid, checked_in, notes)
DEMO_PARTICIPANTS = [
    ("101", "Skyline", "A-01", 4000, 0, 4000, False, ""),
    ("102", "Luna", "B-02", 0, 4000, 0, False, ""),
    ("103", "Comet", "C-03", 0, 3000, 0, True, "2024-06-01 10:15 JST | 事前チェックイン反映 | +0円"),
]


def upsert_defaults(tournament_id: str = DEMO_TOURNAMENT_ID) -> None:
    Base.metadata.create_all(bind=engine)
    with session_scope() as db:
        tournament = ensure_tournament(db, tournament_id)
        if not tournament.name:
            tournament.name = "Demo Tournament"
            db.add(tournament)

        for pid, name, seat, transaction, owed, paid, checked_in, notes in DEMO_PARTICIPANTS:
            if db.get(Participant, (tournament_id, pid)):
                continue
            db.add(
                Participant(
                    tournament_id=tournament_id,
                    participant_id=pid,
                    player_name=name,
                    admin_notes=seat,
                    total_transaction=transaction,
                    total_owed=owed,
                    total_paid=paid,
                    checked_in=checked_in,
                    checked_in_at=datetime.utcnow() if checked_in else None,
                    checked_in_by="seed" if checked_in else None,
                    edit_notes=notes,
                )
            )
        db.commit()


def main() -> None:
    tournament_id = sys.argv[1] if len(sys.argv) > 1 else DEMO_TOURNAMENT_ID
    upsert_defaults(tournament_id)
    print(f"Seed complete for tournament {tournament_id}.")


if __name__ == "__main__":
    main()
