from api.app.services.leaderboard import (
    Pick,
    Result,
    compute_leaderboard,
    is_correct,
    results_by_matchup,
    tally_matchup,
    win_percentage,
)


def _by_name(board):
    return {e.user_name: e for e in board}


def test_two_user_example():
    picks = [
        Pick("U1", "M1", "TeamA"),
        Pick("U2", "M1", "TeamB"),
        Pick("U1", "M2", "TeamA"),
    ]
    results = [Result("M1", "TeamA"), Result("M2", "TeamB")]

    board = compute_leaderboard(picks, results)
    rows = _by_name(board)

    assert (rows["U1"].wins, rows["U1"].losses, rows["U1"].points) == (1, 1, 50)
    assert (rows["U2"].wins, rows["U2"].losses, rows["U2"].points) == (0, 1, 0)
    assert [e.user_name for e in board] == ["U1", "U2"]
    assert [e.rank for e in board] == [1, 2]


def test_perfect_record_ranks_first():
    picks = [
        Pick("U1", "M1", "TeamA"),
        Pick("U1", "M2", "TeamA"),
        Pick("U2", "M1", "TeamA"),
    ]
    results = [Result("M1", "TeamA"), Result("M2", "TeamB")]

    board = compute_leaderboard(picks, results)
    assert [(e.user_name, e.points) for e in board] == [("U2", 100), ("U1", 50)]


def test_totals_match_resolved_bets():
    picks = [
        Pick("a", "M1", "X"), Pick("b", "M1", "Y"), Pick("c", "M1", "x"),
        Pick("a", "M2", "Z"), Pick("b", "M2", "W"),
        Pick("a", "M3", "Q"),  # no result yet
    ]
    results = [Result("M1", "X"), Result("M2", "W")]

    board = compute_leaderboard(picks, results)
    resolved = sum(1 for p in picks if p.matchup_id in {"M1", "M2"})
    assert sum(e.wins for e in board) + sum(e.losses for e in board) == resolved


def test_unresolved_only_users_are_left_out():
    board = compute_leaderboard([Pick("ghost", "M9", "X")], [Result("M1", "X")])
    assert board == []


def test_empty_inputs():
    assert compute_leaderboard([], []) == []


def test_tie_on_points_broken_by_total_picks():
    picks = [
        Pick("short", "M1", "A"), Pick("short", "M2", "B"),
        Pick("long", "M1", "A"), Pick("long", "M2", "B"),
        Pick("long", "M3", "C"), Pick("long", "M4", "D"),
    ]
    results = [Result("M1", "A"), Result("M2", "X"), Result("M3", "C"), Result("M4", "X")]

    board = compute_leaderboard(picks, results)
    assert [e.points for e in board] == [50, 50]
    assert [e.user_name for e in board] == ["long", "short"]


def test_full_tie_keeps_first_seen_order():
    picks = [Pick("first", "M1", "A"), Pick("second", "M1", "A")]
    board = compute_leaderboard(picks, [Result("M1", "A")])
    assert [e.user_name for e in board] == ["first", "second"]
    assert [e.rank for e in board] == [1, 2]


def test_team_match_ignores_case_and_whitespace():
    assert is_correct(" bears ", "Bears")
    assert not is_correct("Bears", "Lions")


def test_win_percentage_rounds_half_up():
    assert win_percentage(0, 0) == 0
    assert win_percentage(1, 8) == 13   # 12.5
    assert win_percentage(2, 3) == 67
    assert win_percentage(1, 3) == 33
    assert win_percentage(5, 5) == 100


def test_first_result_for_a_matchup_wins():
    winners = results_by_matchup([Result("M1", "A"), Result("M1", "B")])
    assert winners == {"M1": "A"}


def test_tally_matchup_counts_only_that_matchup():
    picks = [Pick("a", "M1", "A"), Pick("b", "M1", "B"), Pick("c", "M1", "a"), Pick("d", "M2", "A")]
    assert tally_matchup(picks, "M1", "A") == (2, 1)


def test_entry_dict_shape():
    board = compute_leaderboard([Pick("u", "M1", "A")], [Result("M1", "A")])
    row = board[0].as_dict()
    assert row == {
        "user_name": "u",
        "wins": 1,
        "losses": 0,
        "correct_picks": 1,
        "total_picks": 1,
        "points": 100,
        "win_percentage": 100,
        "rank": 1,
    }
