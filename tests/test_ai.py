"""Tests for the one-ply computer opponent."""

import random

from tictactoe.ai import SimpleAI, find_winning_move
from tictactoe.game import Player, parse_board


def test_ai_takes_immediate_win():
    cells = parse_board("OO XX    ")
    ai = SimpleAI(rng=random.Random(1))

    # X also threatens 5, but winning now comes first.
    assert ai.choose(cells, Player.O) == 2


def test_ai_blocks_opponent_line():
    cells = parse_board("XX  O    ")
    ai = SimpleAI(rng=random.Random(1))
    assert ai.choose(cells, Player.O) == 2


def test_ai_blocks_column_gap_in_the_middle():
    assert SimpleAI().choose(parse_board("X     X O"), Player.O) == 3


def test_winning_move_follows_line_order():
    # Both the top row and the left column are open for X.
    cells = parse_board("XX X     ")
    assert find_winning_move(cells, Player.X) == 2


def test_no_winning_move_returns_none():
    assert find_winning_move(parse_board("X   O    "), Player.X) is None


def test_random_fallback_picks_an_empty_cell():
    cells = parse_board("X   O    ")
    ai = SimpleAI(rng=random.Random(3))
    for _ in range(20):
        move = ai.choose(cells, Player.O)
        assert move is not None
        assert cells[move] is None


def test_seeded_rng_is_reproducible():
    cells = parse_board("         ")
    first = [SimpleAI(rng=random.Random(11)).choose(cells, Player.X) for _ in range(3)]
    second = [SimpleAI(rng=random.Random(11)).choose(cells, Player.X) for _ in range(3)]
    assert first == second


def test_full_board_has_no_move():
    assert SimpleAI().choose(parse_board("XOXXOOOXX"), Player.O) is None
