"""Match scoring route registration."""

from flask import jsonify, request
from flask_login import current_user, login_required

from engine.errors import ValidationError


def register_match_routes(app, *, match_service):

    def _json_body():
        data = request.get_json(silent=True)
        if data is None:
            raise ValidationError("Invalid or missing JSON body")
        if not isinstance(data, dict):
            raise ValidationError("JSON body must be an object")
        return data

    def _optional_json_body():
        """Like _json_body, but an empty body reads as {}."""
        data = request.get_json(silent=True)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValidationError("JSON body must be an object")
        return data

    def _require_official(match_id):
        """Only the match creator or the umpire may drive the scoring."""
        _record, match = match_service.load_match(match_id)
        if not match.is_official(current_user.id):
            app.logger.warning(f"[MatchAuth] {current_user.id} denied on {match_id}")
            return jsonify({"error": "Only the umpire or match creator can update this match"}), 403
        return None

    @app.route("/api/matches", methods=["POST"])
    @login_required
    def create_match():
        data = _json_body()
        match = match_service.create_match(data, created_by=current_user.id)
        app.logger.info(f"[MatchCreate] {match.match_id} by {current_user.id}")
        return jsonify({"message": "Match created", "match": match.to_dict()}), 201

    @app.route("/api/matches", methods=["GET"])
    @login_required
    def list_matches():
        mine = request.args.get("mine", "false").lower() in {"true", "1", "yes"}
        matches = match_service.list_matches(current_user.id if mine else None)
        return jsonify({"count": len(matches), "matches": matches})

    @app.route("/api/matches/<match_id>/start-innings", methods=["POST"])
    @login_required
    def start_innings(match_id):
        denied = _require_official(match_id)
        if denied:
            return denied
        data = _json_body()
        scoreboard = match_service.start_innings(
            match_id,
            data.get("striker"),
            data.get("non_striker", data.get("nonStriker")),
            data.get("bowler"),
        )
        return jsonify({"message": "Innings initialized", "scoreboard": scoreboard})

    @app.route("/api/matches/<match_id>/ball", methods=["POST"])
    @login_required
    def record_ball(match_id):
        denied = _require_official(match_id)
        if denied:
            return denied
        outcome = match_service.record_ball(match_id, _json_body())
        return jsonify({"message": "Ball recorded", **outcome})

    @app.route("/api/matches/<match_id>/next-batsman", methods=["POST"])
    @login_required
    def next_batsman(match_id):
        denied = _require_official(match_id)
        if denied:
            return denied
        data = _json_body()
        outcome = match_service.select_next_batsman(match_id, data.get("name"))
        return jsonify({"message": "Next batsman added", **outcome})

    @app.route("/api/matches/<match_id>/next-bowler", methods=["POST"])
    @login_required
    def next_bowler(match_id):
        denied = _require_official(match_id)
        if denied:
            return denied
        data = _json_body()
        outcome = match_service.validate_next_bowler(match_id, data.get("bowler"))
        return jsonify({"message": "Next bowler validated, ready to bowl", **outcome})

    @app.route("/api/matches/<match_id>/end-innings", methods=["POST"])
    @login_required
    def end_innings(match_id):
        denied = _require_official(match_id)
        if denied:
            return denied
        data = _optional_json_body()
        outcome = match_service.end_innings(match_id, data.get("reason"))
        return jsonify(outcome)

    @app.route("/api/matches/<match_id>/end", methods=["POST"])
    @login_required
    def end_match(match_id):
        denied = _require_official(match_id)
        if denied:
            return denied
        data = _optional_json_body()
        outcome = match_service.abandon_match(match_id, data.get("reason"))
        return jsonify({"message": "Match ended", **outcome})

    @app.route("/api/matches/<match_id>/scoreboard", methods=["GET"])
    @login_required
    def scoreboard(match_id):
        return jsonify(match_service.get_scoreboard(match_id))

    @app.route("/api/matches/<match_id>", methods=["GET"])
    @login_required
    def match_detail(match_id):
        return jsonify(match_service.get_match_details(match_id))
