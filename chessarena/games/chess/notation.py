from typing import Dict, List, Optional, Tuple

from chessarena.rulesets.chess.models import Board, Color, Move, Piece, PieceType, Position, empty_board

FILES = "abcdefgh"

PIECE_GLYPHS: Dict[Tuple[Color, PieceType], str] = {
    ("white", "king"): "♔", ("white", "queen"): "♕", ("white", "rook"): "♖",
    ("white", "bishop"): "♗", ("white", "knight"): "♘", ("white", "pawn"): "♙",
    ("black", "king"): "♚", ("black", "queen"): "♛", ("black", "rook"): "♜",
    ("black", "bishop"): "♝", ("black", "knight"): "♞", ("black", "pawn"): "♟",
}
GLYPH_TO_PIECE: Dict[str, Piece] = {g: Piece(type=t, color=c) for (c, t), g in PIECE_GLYPHS.items()}

FEN_LETTERS: Dict[PieceType, str] = {
    "pawn": "p", "rook": "r", "knight": "n",
    "bishop": "b", "queen": "q", "king": "k",
}
_FEN_TYPES = {v: k for k, v in FEN_LETTERS.items()}


def piece_to_glyph(piece: Optional[Piece]) -> Optional[str]:
    return PIECE_GLYPHS[(piece.color, piece.type)] if piece else None


def glyph_to_piece(glyph: Optional[str]) -> Optional[Piece]:
    if not glyph:
        return None
    if glyph not in GLYPH_TO_PIECE:
        raise ValueError(f"Unknown piece glyph: {glyph!r}")
    return GLYPH_TO_PIECE[glyph]


def board_to_glyphs(board: Board) -> List[List[Optional[str]]]:
    return [[piece_to_glyph(p) for p in row] for row in board]


def board_from_glyphs(grid: List[List[Optional[str]]]) -> Board:
    """Read the glyph grid the web client sends (row 0 = rank 8)."""
    if len(grid) != 8 or any(len(row) != 8 for row in grid):
        raise ValueError("board must be 8x8")
    return [[glyph_to_piece(g) for g in row] for row in grid]


def square_name(pos: Position) -> str:
    row, col = pos
    return FILES[col] + str(8 - row)


def parse_square(sq: str) -> Position:
    sq = sq.strip().lower()
    if len(sq) != 2 or sq[0] not in FILES or sq[1] not in "12345678":
        raise ValueError(f"Bad square: {sq!r}")
    return 8 - int(sq[1]), FILES.index(sq[0])


def move_notation(board: Board, move: Move) -> str:
    """Notation stored in the move log, e.g. "♙e2-e4" or "♙e4xd5".

    Must be computed on the board *before* the move is applied.
    """
    r, c = move.dst
    sep = "x" if board[r][c] is not None else "-"
    return f"{piece_to_glyph(move.piece)}{square_name(move.src)}{sep}{square_name(move.dst)}"


def to_fen(board: Board, turn: Color, fullmove_number: int = 1) -> str:
    # castling, en passant and the halfmove clock are not tracked
    ranks = []
    for row in board:  # row 0 is rank 8, FEN order
        empty = 0
        parts = []
        for p in row:
            if p is None:
                empty += 1
                continue
            if empty:
                parts.append(str(empty)); empty = 0
            letter = FEN_LETTERS[p.type]
            parts.append(letter.upper() if p.color == "white" else letter)
        if empty:
            parts.append(str(empty))
        ranks.append("".join(parts))
    side = "w" if turn == "white" else "b"
    return f"{'/'.join(ranks)} {side} - - 0 {fullmove_number}"


def board_from_fen(fen: str) -> Board:
    """Board from the placement field of a FEN string; other fields are ignored."""
    placement = fen.split()[0]
    rows = placement.split("/")
    if len(rows) != 8:
        raise ValueError(f"Bad FEN placement: {placement!r}")
    board = empty_board()
    for r, rank in enumerate(rows):
        c = 0
        for ch in rank:
            if ch.isdigit():
                c += int(ch)
                continue
            t = _FEN_TYPES.get(ch.lower())
            if t is None or c > 7:
                raise ValueError(f"Bad FEN rank: {rank!r}")
            board[r][c] = Piece(type=t, color="white" if ch.isupper() else "black")
            c += 1
        if c != 8:
            raise ValueError(f"Bad FEN rank: {rank!r}")
    return board
