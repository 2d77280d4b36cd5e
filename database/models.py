from datetime import datetime, timezone

from database import db


def _utcnow():
    return datetime.now(timezone.utc)


class Match(db.Model):
    """Persisted match aggregate.

    The full scoring state (both innings, ball logs, ledgers) is stored as one
    JSON document in ``state``; the other columns are denormalised for
    listing and filtering.  ``version`` is SQLAlchemy's optimistic
    concurrency counter: a write based on a stale read fails with
    StaleDataError instead of overwriting a newer state.
    """
    __tablename__ = 'matches'

    id = db.Column(db.String(36), primary_key=True)  # UUID
    room_id = db.Column(db.String(64), nullable=True, index=True)
    created_by = db.Column(db.String(120), nullable=True, index=True)
    umpire = db.Column(db.String(120), nullable=True, index=True)

    match_type = db.Column(db.String(20), default='T20')
    overs_per_side = db.Column(db.Integer, default=20)
    status = db.Column(db.String(20), default='not_started', nullable=False, index=True)
    current_innings_index = db.Column(db.Integer, default=0, nullable=False)

    # Result
    winner = db.Column(db.String(120), nullable=True)
    result_description = db.Column(db.String(200))  # e.g. "A won by 12 runs"
    margin_type = db.Column(db.String(10))  # 'runs' or 'tie'
    margin_value = db.Column(db.Integer)

    # Toss Information
    toss_winner = db.Column(db.String(120))
    toss_decision = db.Column(db.String(10))  # 'bat' or 'bowl'

    state = db.Column(db.JSON, nullable=False)
    version = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    __mapper_args__ = {"version_id_col": version}

    def summary(self):
        state = self.state or {}
        return {
            "match_id": self.id,
            "room_id": self.room_id,
            "match_type": self.match_type,
            "status": self.status,
            "teams": state.get("teams", []),
            "toss": state.get("toss"),
            "result": state.get("result"),
            "created_by": self.created_by,
            "umpire": self.umpire,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
