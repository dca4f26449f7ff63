from __future__ import annotations
import random
from typing import Any, Dict, List, Optional, Tuple
from chessarena.core.primitives import Explanation
from chessarena.games.chess.notation import GLYPH_TO_PIECE
from .models import Board, Color, GameStatus, Move, Piece, PieceType, Position, empty_board, in_bounds


BACK_RANK: List[PieceType] = ['rook','knight','bishop','queen','king','bishop','knight','rook']
HOME_ROW = {'white': 6, 'black': 1}
FORWARD = {'white': -1, 'black': 1}


def opposite(c:Color)->Color: return 'black' if c=='white' else 'white'


def initial_board()->Board:
    def P(t:PieceType,c:Color): return Piece(type=t,color=c)
    b=empty_board()
    for col,t in enumerate(BACK_RANK):
        b[0][col]=P(t,'black'); b[1][col]=P('pawn','black')
        b[6][col]=P('pawn','white'); b[7][col]=P(t,'white')
    return b


def get_piece_color(piece:Any)->Optional[Color]:
    if isinstance(piece,Piece): return piece.color
    if isinstance(piece,str) and piece in GLYPH_TO_PIECE: return GLYPH_TO_PIECE[piece].color
    return None


def _sign(n:int)->int: return (n>0)-(n<0)


def is_path_clear(board:Board,src:Position,dst:Position)->bool:
    """True if every square strictly between src and dst is empty.

    The caller guarantees src and dst share a row, a column or a diagonal.
    """
    dr,dc=_sign(dst[0]-src[0]),_sign(dst[1]-src[1])
    r,c=src[0]+dr,src[1]+dc
    while (r,c)!=(dst[0],dst[1]):
        if board[r][c] is not None: return False
        r+=dr; c+=dc
    return True


def check_move(board:Board,src:Position,dst:Position,piece:Any=None)->Tuple[bool,Dict[str,Any]]:
    """Pseudo-legal move check; returns (ok, info) with a rejection reason or the move kind.

    When `piece` is given it is trusted to be the piece standing on `src`;
    when omitted it is read from the board. A glyph such as "♙" is read as its piece.
    """
    src,dst=tuple(src),tuple(dst)
    if not (in_bounds(src) and in_bounds(dst)): return False, {'reason':'off board'}
    if src==dst: return False, {'reason':'same square'}
    if piece is None: piece=board[src[0]][src[1]]
    if piece is None: return False, {'reason':'no piece at src'}
    if isinstance(piece,str): piece=GLYPH_TO_PIECE.get(piece,piece)
    if not isinstance(piece,Piece): return False, {'reason':'unknown piece'}
    tgt=board[dst[0]][dst[1]]
    if tgt is not None and tgt.color==piece.color: return False, {'reason':'friendly on dst'}
    dr,dc=dst[0]-src[0],dst[1]-src[1]
    t=piece.type

    if t=='pawn':
        fwd=FORWARD[piece.color]
        if dc==0 and dr==fwd:
            if tgt is not None: return False, {'reason':'blocked'}
        elif dc==0 and dr==2*fwd and src[0]==HOME_ROW[piece.color]:
            if board[src[0]+fwd][src[1]] is not None or tgt is not None: return False, {'reason':'blocked'}
        elif abs(dc)==1 and dr==fwd:
            if tgt is None: return False, {'reason':'no piece to capture'}
        else:
            return False, {'reason':'illegal pawn move'}

    elif t=='knight':
        if (abs(dr),abs(dc)) not in ((1,2),(2,1)): return False, {'reason':'illegal knight'}

    elif t=='bishop':
        if abs(dr)!=abs(dc): return False, {'reason':'illegal bishop'}
        if not is_path_clear(board,src,dst): return False, {'reason':'path blocked'}

    elif t=='rook':
        if dr and dc: return False, {'reason':'illegal rook'}
        if not is_path_clear(board,src,dst): return False, {'reason':'path blocked'}

    elif t=='queen':
        if dr and dc and abs(dr)!=abs(dc): return False, {'reason':'illegal queen'}
        if not is_path_clear(board,src,dst): return False, {'reason':'path blocked'}

    elif t=='king':
        if max(abs(dr),abs(dc))>1: return False, {'reason':'illegal king'}

    else:
        return False, {'reason':'unknown piece'}

    return True, {'kind':'capture' if tgt is not None else 'normal'}


def is_valid_move(board:Board,src:Position,dst:Position,piece:Any=None)->bool:
    return check_move(board,src,dst,piece)[0]


def apply_move(board:Board,src:Position,dst:Position)->Board:
    """Copy of `board` with the piece on src moved to dst; the input is left untouched."""
    b=[row[:] for row in board]
    b[dst[0]][dst[1]]=b[src[0]][src[1]]
    b[src[0]][src[1]]=None
    return b


def get_possible_moves_for_piece(board:Board,pos:Position,piece:Any=None)->List[Position]:
    return [(r,c) for r in range(8) for c in range(8) if is_valid_move(board,pos,(r,c),piece)]


def get_all_possible_moves(board:Board,color:Color)->List[Move]:
    moves:List[Move]=[]
    for r in range(8):
        for c in range(8):
            p=board[r][c]
            if p is None or p.color!=color: continue
            moves+=[Move(src=(r,c),dst=d,piece=p) for d in get_possible_moves_for_piece(board,(r,c),p)]
    return moves


def make_bot_move(board:Board,color:Color,rng:Optional[random.Random]=None)->Optional[Move]:
    """Random move for `color`, drawn from the captures when there are any.

    `rng` only needs a `choice` method; the `random` module is used by default.
    """
    moves=get_all_possible_moves(board,color)
    if not moves: return None
    captures=[m for m in moves if board[m.dst[0]][m.dst[1]] is not None]
    return (rng or random).choice(captures or moves)


def find_king(board:Board,color:Color)->Optional[Position]:
    for r in range(8):
        for c in range(8):
            p=board[r][c]
            if p is not None and p.type=='king' and p.color==color: return (r,c)
    return None


def is_king_in_check(board:Board,king_pos:Position,king_color:Color)->bool:
    king_pos=tuple(king_pos); them=opposite(king_color)
    for r in range(8):
        for c in range(8):
            p=board[r][c]
            if p is not None and p.color==them and is_valid_move(board,(r,c),king_pos,p): return True
    return False


def _has_safe_move(board:Board,color:Color,king_pos:Position)->bool:
    for m in get_all_possible_moves(board,color):
        after=apply_move(board,m.src,m.dst)
        k=m.dst if m.piece.type=='king' else king_pos
        if not is_king_in_check(after,k,color): return True
    return False


def is_checkmate(board:Board,color:Color)->bool:
    """A missing king counts as mate; a side that is not in check is never mated (stalemate included)."""
    king=find_king(board,color)
    if king is None: return True
    if not is_king_in_check(board,king,color): return False
    return not _has_safe_move(board,color,king)


def game_status(board:Board,color:Color)->GameStatus:
    """Status for the side to move: ongoing, checkmate or stalemate."""
    king=find_king(board,color)
    if king is None: return 'checkmate'
    if _has_safe_move(board,color,king): return 'ongoing'
    return 'checkmate' if is_king_in_check(board,king,color) else 'stalemate'


def explain_move(board:Board,src:Position,dst:Position,piece:Any=None)->Explanation:
    src,dst=tuple(src),tuple(dst)
    if isinstance(piece,str): piece=GLYPH_TO_PIECE.get(piece,piece)
    steps=[]
    ok,info=check_move(board,src,dst,piece)
    steps.append({"check":"basic_legality","ok":ok,"info":info})
    if not ok: return Explanation(ok=False, steps=steps, outcome={"reason":info.get("reason")})
    mover=piece if piece is not None else board[src[0]][src[1]]
    after=apply_move(board,src,dst)
    own_king=find_king(after,mover.color)
    self_check=own_king is not None and is_king_in_check(after,own_king,mover.color)
    # informational only: leaving the own king attacked is still accepted
    steps.append({"check":"own_king_safe_after_move","ok": not self_check})
    their_king=find_king(after,opposite(mover.color))
    opp_in_check=their_king is not None and is_king_in_check(after,their_king,opposite(mover.color))
    return Explanation(ok=True, steps=steps, outcome={"kind":info.get("kind"),"opponent_in_check":opp_in_check})
