from conftest import make_raw
from tennis_importer.errors import (
    ErrorKind,
    ProviderHTTPError,
    SchemaError,
    classify_exception,
    troubleshooting,
)
from tennis_importer.models import MatchScores, SideScore
from tennis_importer.parser import parse_match
from tennis_importer.scoring import format_tennis_score, match_result


def test_format_score_with_games():
    scores = MatchScores(SideScore(2, [6, 3, 7]), SideScore(1, [4, 6]))
    assert format_tennis_score(scores) == "2-1 (6-4, 3-6, 7-0)"


def test_format_score_sets_only():
    assert format_tennis_score(MatchScores(SideScore(3), SideScore(0))) == "3-0"


def test_match_result():
    m = parse_match(make_raw())
    assert match_result(m) == "Jannik Sinner wins 1-3 (6-4, 3-6, 6-7, 4-6)"
    live = parse_match(make_raw(status_type="live"))
    assert match_result(live) == "Match in progress or upcoming"


def test_error_kinds_are_typed():
    assert classify_exception(ProviderHTTPError(403)) is ErrorKind.AUTH
    assert classify_exception(SchemaError("no such table: matches")) is ErrorKind.SCHEMA
    # message text is never sniffed
    assert classify_exception(RuntimeError("429 quota fetch")) is ErrorKind.UNKNOWN


def test_troubleshooting_hints():
    headline, hints = troubleshooting(ErrorKind.QUOTA)
    assert headline == "Tennis API quota exceeded"
    assert hints
    assert troubleshooting(ErrorKind.UNKNOWN)[0] == "Unexpected import error"
