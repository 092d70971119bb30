from datetime import datetime, timedelta, timezone

from conftest import make_raw
from tennis_importer.parser import map_status, parse_datetime, parse_match


def test_full_record():
    m = parse_match(make_raw())
    assert m.id == "1001"
    assert m.api_match_id == 1001
    assert m.player1.name == "Carlos Alcaraz"
    assert m.player2.name == "Jannik Sinner"
    assert m.player1.ranking is None and m.player1.country is None
    assert m.tournament.level == "Grand Chelem"
    assert m.tournament.importance == 2000
    assert m.surface == "Grass" == m.tournament.surface
    assert m.venue.name == "Centre Court"
    assert m.round == "Final"
    assert m.status == "FINISHED"
    assert m.date == datetime(2025, 7, 13, 14, tzinfo=timezone.utc)
    assert m.scores.player1.sets == 1
    assert m.scores.player1.games == [6, 3, 6, 4]
    assert m.scores.player2.games == [4, 6, 7, 6]
    assert m.scores.player2.tiebreaks == [7]
    assert m.defaulted == set()


def test_missing_start_time_defaults_to_now():
    raw = make_raw()
    del raw["start_time"]
    before = datetime.now(timezone.utc)
    m = parse_match(raw)
    assert abs(m.date - before) < timedelta(seconds=5)
    assert "date" in m.defaulted


def test_specific_start_time_fallback():
    m = parse_match(make_raw(start_time=None, specific_start_time="2025-07-10 12:30"))
    assert m.date == datetime(2025, 7, 10, 12, 30, tzinfo=timezone.utc)
    assert "date" not in m.defaulted


def test_surface_guessed_from_name():
    m = parse_match(make_raw(tournament_name="Roland Garros Masters", ground_type=None))
    assert m.surface == "Clay"
    assert m.tournament.surface == "Clay"
    assert "surface" in m.defaulted


def test_empty_record_is_fully_defaulted():
    m = parse_match({})
    assert m.id.startswith("tennis_")
    assert m.api_match_id is None
    assert m.player1.name == "Player 1"
    assert m.player2.name == "Player 2"
    assert m.tournament.name == "Tennis Tournament"
    assert m.tournament.level == "ATP Tournament"
    assert m.tournament.importance is None
    assert m.venue.name == "Tennis Court"
    assert m.venue.city == "Unknown City"
    assert m.round == "Round"
    assert m.status == "SCHEDULED"
    assert m.scores.player1.sets == 0 and m.scores.player1.games == []
    assert {"id", "player1", "player2", "tournament", "venue", "date", "scores", "round", "surface"} <= m.defaulted


def test_explicit_games_lists():
    m = parse_match(make_raw(
        home_team_score={"sets": 2, "games": [6, 7], "tiebreaks": [7]},
        away_team_score={"sets": 0, "series": [4, 6]},
    ))
    assert m.scores.player1.sets == 2
    assert m.scores.player1.games == [6, 7]
    assert m.scores.player1.tiebreaks == [7]
    assert m.scores.player2.games == [4, 6]


def test_one_sided_score_is_defaulted():
    m = parse_match(make_raw(away_team_score=None))
    assert m.scores.player1.sets == 0
    assert "scores" in m.defaulted


def test_round_as_plain_string():
    assert parse_match(make_raw(round="Quarterfinal")).round == "Quarterfinal"


def test_map_status():
    assert map_status("finished") == "FINISHED"
    assert map_status("Live") == "LIVE"
    assert map_status("upcoming") == "SCHEDULED"
    assert map_status("suspended") == "POSTPONED"
    assert map_status("postponed") == "POSTPONED"
    assert map_status("canceled") == "CANCELLED"
    assert map_status("cancelled") == "CANCELLED"
    assert map_status("interrupted") == "SCHEDULED"
    assert map_status(None) == "SCHEDULED"


def test_parse_datetime_epochs():
    assert parse_datetime(1752415200) == datetime(2025, 7, 13, 14, tzinfo=timezone.utc)
    assert parse_datetime(1752415200000) == datetime(2025, 7, 13, 14, tzinfo=timezone.utc)
    assert parse_datetime("not a date") is None
    assert parse_datetime("") is None
