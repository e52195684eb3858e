"""
PGN parsing into the ordered list of positions to evaluate.
"""

import io

import chess
import chess.pgn

from review.errors import InputError, ParseError
from review.models import Move, ParsedGame, Players, Position, Profile


def positions_from_pgn(pgn: str) -> ParsedGame:
    """
    Replay a PGN game and return one Position per board state.

    The first position is the starting board (no move); every following
    position carries the SAN/UCI of the move that produced it. Player names
    and ratings are taken from the White/Black/WhiteElo/BlackElo headers.

    Raises:
        InputError: if the PGN text is empty
        ParseError: if the game cannot be read or contains illegal moves
    """
    if not pgn or not pgn.strip():
        raise InputError("Provide a game to analyse.")

    try:
        game = chess.pgn.read_game(io.StringIO(pgn))
    except Exception as e:
        raise ParseError("Failed to parse PGN.") from e

    if game is None:
        raise ParseError("Failed to parse PGN.")
    if game.errors:
        raise ParseError("PGN contains illegal moves") from game.errors[0]

    try:
        board = game.board()
    except ValueError as e:
        # Bad FEN header
        raise ParseError("Failed to parse PGN.") from e

    positions = [Position(index=0, fen=board.fen())]
    for move in game.mainline_moves():
        san = board.san(move)
        board.push(move)
        positions.append(Position(
            index=len(positions),
            fen=board.fen(),
            move=Move(san=san, uci=move.uci()),
        ))

    return ParsedGame(players=players_from_headers(game.headers), positions=positions)


def players_from_headers(headers: chess.pgn.Headers) -> Players:
    """Build player profiles from PGN tag pairs, keeping defaults for missing tags."""
    players = Players()
    _set_player(players.white, headers.get("White"), headers.get("WhiteElo"))
    _set_player(players.black, headers.get("Black"), headers.get("BlackElo"))
    return players


def _set_player(player: Profile, username: str | None, rating: str | None):
    # python-chess fills missing seven-tag-roster entries with "?"
    if username and username != "?":
        player.username = username
    if rating and rating != "?":
        player.rating = rating
