from knightcoach.utils.pgn_parser import (
    extract_moves_section,
    parse_pgn_headers,
    split_pgn_games,
)


# --- split_pgn_games --- #
def test_split_two_games(two_game_export):
    blocks = split_pgn_games(two_game_export)

    assert len(blocks) == 2
    pairs = [
        (parse_pgn_headers(b)["White"], parse_pgn_headers(b)["Black"]) for b in blocks
    ]
    assert pairs == [("Alice", "Bob"), ("Carol", "Alice")]
    assert all(b.startswith('[Event "') for b in blocks)


def test_split_handles_crlf(two_game_export):
    blocks = split_pgn_games(two_game_export.replace("\n", "\r\n"))

    assert len(blocks) == 2
    assert "\r" not in blocks[1]


def test_split_tolerates_extra_blank_lines(white_win_pgn, black_loss_pgn):
    blocks = split_pgn_games(white_win_pgn + "\n\n\n\n" + black_loss_pgn)
    assert len(blocks) == 2
    assert parse_pgn_headers(blocks[1])["Link"] == "https://lichess.org/zzz999"


def test_split_keeps_header_move_gap_inside_one_game(white_win_pgn):
    blocks = split_pgn_games(white_win_pgn)
    assert blocks == [white_win_pgn]


def test_split_empty_input():
    assert split_pgn_games("") == []
    assert split_pgn_games("\n\n  \n") == []


# --- parse_pgn_headers --- #
def test_parse_headers_basic(white_win_pgn):
    headers = parse_pgn_headers(white_win_pgn)

    assert headers["Event"] == "Rated Blitz game"
    assert headers["Site"] == "https://lichess.org/abc123"
    assert headers["TimeControl"] == "600+5"
    assert "e4" not in headers


def test_parse_headers_skips_malformed_and_last_wins():
    block = '[White "A"]\n[Broken tag\n[Black B]\n[White "Z"]\n\n1. e4 *'

    assert parse_pgn_headers(block) == {"White": "Z"}


def test_parse_headers_no_tags():
    assert parse_pgn_headers("1. d4 d5 2. c4 c6") == {}


# --- extract_moves_section --- #
def test_extract_moves_section(white_win_pgn):
    moves = extract_moves_section(white_win_pgn)
    assert moves.startswith("1. e4 e5")
    assert "[" not in moves


def test_extract_moves_section_empty():
    assert extract_moves_section('[Event "x"]\n[White "y"]') == ""
