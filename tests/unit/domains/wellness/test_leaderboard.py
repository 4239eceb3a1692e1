"""Tests for the leaderboard."""

from __future__ import annotations

from nutriaura.domains.wellness.forum import CURRENT_USER
from nutriaura.domains.wellness.leaderboard import SIMULATED_PEERS, build_leaderboard
from nutriaura.domains.wellness.progression import normalize


def _user(board):
    return next(e for e in board if e.is_current_user)


def test_new_user_ranks_last():
    board = build_leaderboard(normalize(1, 0))
    assert len(board) == len(SIMULATED_PEERS) + 1
    assert [e.rank for e in board] == list(range(1, 7))
    assert board[0].name == "GlowingGrace"
    assert _user(board).rank == 6
    assert _user(board).name == CURRENT_USER


def test_user_total_is_lifetime_ap():
    # level 3 with 50 leftover = 200 + 300 + 50
    board = build_leaderboard(normalize(3, 50))
    assert _user(board).total_ap == 550
    assert _user(board).level == 3
    assert _user(board).rank == 5


def test_tie_ranks_user_below_peer():
    board = build_leaderboard(normalize(1, 0), peers=(("Alpha", 0),))
    assert [e.name for e in board] == ["Alpha", CURRENT_USER]


def test_peer_levels_derived_from_ap():
    board = build_leaderboard(normalize(1, 0))
    levels = {e.name: e.level for e in board}
    assert levels["GlowingGrace"] == 6
    assert levels["SleepySloth"] == 2
    assert board[0].to_dict()["total_ap"] == 2150
