"""
engine/match_service.py
=======================

Match operations addressed by match id, with persistence and write
serialisation around the in-memory Match aggregate.

Every write follows the same bracket:

    with _get_match_lock(match_id):        # one writer per match in-process
        load row (fresh read) -> Match.from_dict
        apply the operation               # raises before mutating on rejection
        store Match.to_dict -> commit     # version_id_col guards other processes

A commit that loses the optimistic-concurrency race raises StaleDataError,
which is rolled back and reported as ConcurrencyConflict for the caller to
retry.  Two interleaved record_ball calls can therefore never both apply to
the same pre-state.  Reads skip the lock and may see a slightly older state.
"""

import logging
import threading
import weakref

from sqlalchemy import or_
from sqlalchemy.orm.exc import StaleDataError

from database import db
from database.models import Match as DBMatch
from engine.errors import ConcurrencyConflict, NotFound, ScoringError
from engine.match import Match
from engine.scoreboard import build_match_details, build_scoreboard, innings_summary
from engine.settings import ScoringSettings

logger = logging.getLogger(__name__)

# A lock lives only while some request holds it; idle matches drop out.
MATCH_LOCKS = weakref.WeakValueDictionary()
MATCH_LOCKS_LOCK = threading.Lock()


def _get_match_lock(match_id):
    with MATCH_LOCKS_LOCK:
        lock = MATCH_LOCKS.get(match_id)
        if lock is None:
            lock = threading.Lock()
            MATCH_LOCKS[match_id] = lock
        return lock


class MatchService:
    """Entry point for the HTTP layer; one instance per application."""

    def __init__(self, settings=None):
        self.settings = settings or ScoringSettings()

    # ------------------------------------------------------------------ #
    # Storage helpers                                                      #
    # ------------------------------------------------------------------ #

    def _load_record(self, match_id, fresh=False):
        if not match_id:
            raise NotFound("Match not found", match_id=match_id)
        if fresh:
            record = db.session.get(DBMatch, match_id, populate_existing=True)
        else:
            record = db.session.get(DBMatch, match_id)
        if record is None:
            raise NotFound("Match not found", match_id=match_id)
        return record

    def load_match(self, match_id, fresh=False):
        record = self._load_record(match_id, fresh=fresh)
        return record, Match.from_dict(record.state, settings=self.settings)

    @staticmethod
    def _store(record, match):
        record.state = match.to_dict()
        record.status = match.status
        record.current_innings_index = match.current_innings_index
        record.winner = match.result.winner
        record.result_description = match.result.summary
        record.margin_type = match.result.margin_type
        record.margin_value = match.result.margin_value

    def _commit(self, match_id, tag):
        try:
            db.session.commit()
        except StaleDataError:
            db.session.rollback()
            logger.warning(f"[{tag}] Stale write rejected for match {match_id}")
            raise ConcurrencyConflict(
                "Match was updated by another request; reload and retry",
                match_id=match_id,
            )

    def _mutate(self, match_id, tag, operation):
        """Run `operation(match)` as one serialised, all-or-nothing write."""
        with _get_match_lock(match_id):
            record, match = self.load_match(match_id, fresh=True)
            try:
                outcome = operation(match)
            except ScoringError as exc:
                db.session.rollback()
                logger.info(f"[{tag}] {match_id} rejected: {exc.message}")
                raise
            self._store(record, match)
            self._commit(match_id, tag)
            return match, outcome

    # ------------------------------------------------------------------ #
    # Writes                                                               #
    # ------------------------------------------------------------------ #

    def create_match(self, context, created_by=None):
        context = dict(context or {})
        if created_by:
            context["created_by"] = created_by
        match = Match.create(context, settings=self.settings)
        record = DBMatch(
            id=match.match_id,
            room_id=match.room_id,
            created_by=match.created_by,
            umpire=match.umpire,
            match_type=match.fmt.name,
            overs_per_side=match.overs_limit,
            toss_winner=match.toss_winner,
            toss_decision=match.toss_choice,
        )
        self._store(record, match)
        db.session.add(record)
        db.session.commit()
        return match

    def start_innings(self, match_id, striker, non_striker, opening_bowler):
        match, innings = self._mutate(
            match_id, "StartInnings",
            lambda m: m.start_innings(striker, non_striker, opening_bowler),
        )
        return build_scoreboard(match)

    def record_ball(self, match_id, ball_input):
        def _apply(match):
            index = match.current_innings_index
            ball = match.record_ball(ball_input)
            return index, ball

        match, (index, ball) = self._mutate(match_id, "RecordBall", _apply)
        innings = match.innings[index]
        snapshot = innings_summary(innings, index + 1)
        snapshot["current_partnership"] = {
            "striker": innings.current_partnership.striker,
            "non_striker": innings.current_partnership.non_striker,
            "runs": innings.current_partnership.runs,
        }
        return {
            "ball": ball.to_dict(),
            "innings": snapshot,
            "innings_completed": innings.completed,
            "match_status": match.status,
            "result": match.result.to_dict(),
        }

    def select_next_batsman(self, match_id, name):
        match, slot = self._mutate(
            match_id, "NextBatsman", lambda m: m.select_next_batsman(name)
        )
        partnership = match.current_innings.current_partnership
        return {
            "name": name,
            "position": slot,
            "partnership": {
                "striker": partnership.striker,
                "non_striker": partnership.non_striker,
                "runs": partnership.runs,
            },
        }

    def end_innings(self, match_id, reason=None):
        match, innings = self._mutate(
            match_id, "EndInnings", lambda m: m.end_innings(reason)
        )
        return {
            "message": f"Innings ended: {reason or 'finished'}",
            "match_status": match.status,
            "current_innings_index": match.current_innings_index,
            "result": match.result.to_dict(),
        }

    def abandon_match(self, match_id, reason=None):
        match, result = self._mutate(match_id, "EndMatch", lambda m: m.abandon(reason))
        return {"match_status": match.status, "result": result.to_dict()}

    # ------------------------------------------------------------------ #
    # Reads                                                                #
    # ------------------------------------------------------------------ #

    def validate_next_bowler(self, match_id, bowler):
        _record, match = self.load_match(match_id)
        return match.validate_next_bowler(bowler)

    def get_scoreboard(self, match_id):
        _record, match = self.load_match(match_id)
        return build_scoreboard(match)

    def get_match_details(self, match_id):
        _record, match = self.load_match(match_id)
        return build_match_details(match)

    def list_matches(self, user_id=None):
        query = DBMatch.query
        if user_id:
            query = query.filter(or_(DBMatch.created_by == user_id, DBMatch.umpire == user_id))
        records = query.order_by(DBMatch.created_at.desc()).all()
        return [r.summary() for r in records]
