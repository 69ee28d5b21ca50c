"""
Race tests for admission: capacity and duplicate guards under concurrent attempts.

Each thread uses its own session against the shared file-backed SQLite
database, so the conditional update and unique index are the only guards.
"""
import threading
from datetime import timedelta

from tourney.core.errors import TournamentFullError, AlreadyRegisteredError
from tourney.models import Tournament, TournamentPlayer
from tourney.services import tournament_service


def _race(session_factory, tournament_id, attempts):
    """Run register() for each (phone, game_name) in parallel; return (successes, errors)."""
    barrier = threading.Barrier(len(attempts))
    successes = []
    errors = []
    lock = threading.Lock()

    def worker(phone, game_name):
        session = session_factory()
        try:
            barrier.wait()
            admission = tournament_service.register(session, tournament_id, phone, game_name, "uid-1")
            with lock:
                successes.append((phone, admission))
        except Exception as e:
            with lock:
                errors.append(e)
        finally:
            session.close()

    threads = [threading.Thread(target=worker, args=attempt) for attempt in attempts]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return successes, errors


class TestConcurrentAdmission:
    def test_last_slot_goes_to_exactly_one(self, db, session_factory, make_user, make_tournament):
        phones = [f"+1201555{n:04d}" for n in range(200, 208)]
        for phone in phones:
            make_user(phone=phone)
        tournament = make_tournament(start_in=timedelta(hours=1), max_players=1)

        successes, errors = _race(session_factory, tournament.id, [(p, "Racer") for p in phones])

        assert len(successes) == 1, f"Expected one admission, got {len(successes)}. Errors: {errors}"
        assert len(errors) == len(phones) - 1
        assert all(isinstance(e, TournamentFullError) for e in errors), errors
        assert successes[0][1].room_id == "room-42"

        db.expire_all()
        reloaded = db.get(Tournament, tournament.id)
        assert reloaded.player_count == 1
        assert [p.phone for p in reloaded.players] == [successes[0][0]]

    def test_capacity_never_exceeded(self, db, session_factory, make_user, make_tournament):
        phones = [f"+1201555{n:04d}" for n in range(300, 310)]
        for phone in phones:
            make_user(phone=phone)
        tournament = make_tournament(start_in=timedelta(hours=1), max_players=3)

        successes, errors = _race(session_factory, tournament.id, [(p, "Racer") for p in phones])

        assert len(successes) == 3, errors
        assert all(isinstance(e, TournamentFullError) for e in errors), errors
        db.expire_all()
        assert db.get(Tournament, tournament.id).player_count == 3
        assert db.query(TournamentPlayer).filter(TournamentPlayer.tournament_id == tournament.id).count() == 3

    def test_duplicate_phone_admitted_once(self, db, session_factory, make_user, make_tournament):
        phone = "+12015550400"
        make_user(phone=phone)
        tournament = make_tournament(start_in=timedelta(hours=1), max_players=10)

        successes, errors = _race(session_factory, tournament.id, [(phone, f"Twin{i}") for i in range(5)])

        assert len(successes) == 1, errors
        assert all(isinstance(e, AlreadyRegisteredError) for e in errors), errors
        db.expire_all()
        reloaded = db.get(Tournament, tournament.id)
        assert reloaded.player_count == 1
        assert len(reloaded.players) == 1
