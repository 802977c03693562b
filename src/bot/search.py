"""
The bot: minimax with alpha-beta pruning under a wall-clock budget.

Two time limits protect the game from a bot that never answers:

* soft budget (`BotConfig.time_budget_ms`): a `Deadline` passed into the search. It is checked every
  `node_check_interval` visited nodes. Once expired, the search unwinds and the best move found so far is used.
* hard ceiling (`BotConfig.outer_timeout_ms`): `select_bot_move()` runs the search in a worker thread and stops
  waiting after this long, answering with a random legal move instead.

There is no way to cancel a running search from the outside: an abandoned search runs until its own budget ends.
It only ever reads the (immutable) board it was given, so nothing is corrupted by letting it finish.
"""

import logging
import random
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from typing import Callable, Optional

from src.bot.evaluation import evaluate, personality_bonus
from src.chess.board import Board
from src.chess.executor import MoveResult, apply_move, promote
from src.chess.moves import EnPassantTarget, Move
from src.chess.pieces import PieceType, Side
from src.chess.rules import is_in_check, legal_moves
from src.core.config import Settings
from src.core.shared_types import Difficulty, Personality

logger = logging.getLogger(__name__)

# Checkmate scores are MATE_SCORE + remaining depth: a mate found with more depth left is nearer, so it scores higher
MATE_SCORE = 100_000
INFINITY = 10**9

# difficulty -> (size of the top group to sample from, probability of sampling instead of playing the best move)
DIFFICULTY_SPREAD: dict[Difficulty, tuple[int, float]] = {
    Difficulty.EASY: (5, 0.5),
    Difficulty.MEDIUM: (3, 0.3),
    Difficulty.HARD: (1, 0.0),
}

# The outer ceiling is this many times the soft budget, unless configured explicitly
OUTER_TIMEOUT_FACTOR = 10


@dataclass(frozen=True)
class BotConfig:
    difficulty: Difficulty = Difficulty.MEDIUM
    personality: Personality = Personality.BALANCED
    max_depth: int = 2
    time_budget_ms: int = 3000
    node_check_interval: int = 20
    # below the root only the first `move_limit` moves are searched
    move_limit: int = 20
    outer_timeout_ms: Optional[int] = None
    seed: Optional[int] = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        difficulty: Difficulty = Difficulty.MEDIUM,
        personality: Personality = Personality.BALANCED,
    ) -> "BotConfig":
        return cls(
            difficulty=difficulty,
            personality=personality,
            max_depth=settings.bot_max_depth,
            time_budget_ms=settings.bot_time_budget_ms,
        )

    @property
    def outer_deadline_ms(self) -> int:
        if self.outer_timeout_ms is not None:
            return self.outer_timeout_ms
        return self.time_budget_ms * OUTER_TIMEOUT_FACTOR


class Deadline:
    """Wall-clock budget. Once expired it stays expired."""

    def __init__(
        self, budget_ms: int, clock: Callable[[], float] = time.perf_counter
    ) -> None:
        self._clock = clock
        self._start = clock()
        self._budget_s = budget_ms / 1000
        self._expired = False

    def elapsed_ms(self) -> int:
        return int((self._clock() - self._start) * 1000)

    def expired(self) -> bool:
        if not self._expired and self._clock() - self._start >= self._budget_s:
            self._expired = True
        return self._expired


@dataclass
class SearchState:
    """Mutable bookkeeping of one search: visited nodes and whether the budget ran out."""

    deadline: Deadline
    node_check_interval: int = 20
    nodes: int = 0
    timed_out: bool = False

    def visit(self) -> bool:
        """Count a node. Every `node_check_interval` nodes, look at the clock. Returns True when out of time."""
        self.nodes += 1
        if not self.timed_out and self.nodes % self.node_check_interval == 0:
            self.timed_out = self.deadline.expired()
        return self.timed_out


@dataclass(frozen=True)
class ScoredMove:
    move: Move
    score: int


@dataclass(frozen=True)
class SearchResult:
    best_move: Optional[Move]
    score: Optional[int]
    nodes: int
    elapsed_ms: int
    # False when the soft budget cut the search short
    completed: bool
    # root moves, best first. Ties keep generation order.
    ranked: list[ScoredMove] = field(default_factory=list)


def _play(board: Board, move: Move, en_passant: Optional[EnPassantTarget]) -> MoveResult:
    """Apply a move the way the bot plays it: promotions always become a queen"""
    result = apply_move(board, move.from_square, move.to_square, en_passant)
    if result.is_promotion and result.promotion_square is not None:
        promoted = promote(result.board, result.promotion_square, PieceType.QUEEN)
        return MoveResult(
            board=promoted,
            captured_piece=result.captured_piece,
            is_promotion=True,
            promotion_square=result.promotion_square,
        )
    return result


def minimax(
    board: Board,
    depth: int,
    alpha: int,
    beta: int,
    maximizing: bool,
    side: Side,
    en_passant: Optional[EnPassantTarget],
    state: SearchState,
    config: BotConfig,
) -> int:
    """
    Score of `board` for `side`, looking `depth` plies ahead.

    `maximizing` tells whose turn it is on this board: `side` (True) or its opponent (False).
    """
    if state.visit() or depth == 0:
        return evaluate(board, side)

    to_move = side if maximizing else side.opponent
    moves = legal_moves(board, to_move, en_passant)

    if not moves:
        if is_in_check(board, to_move):
            return -(MATE_SCORE + depth) if maximizing else MATE_SCORE + depth
        # stalemate
        return 0

    if maximizing:
        best = -INFINITY
        for move in moves[: config.move_limit]:
            result = _play(board, move, en_passant)
            value = minimax(
                result.board,
                depth - 1,
                alpha,
                beta,
                False,
                side,
                result.en_passant_target,
                state,
                config,
            )
            best = max(best, value)
            alpha = max(alpha, value)
            if beta <= alpha or state.timed_out:
                break
        return best

    best = INFINITY
    for move in moves[: config.move_limit]:
        result = _play(board, move, en_passant)
        value = minimax(
            result.board,
            depth - 1,
            alpha,
            beta,
            True,
            side,
            result.en_passant_target,
            state,
            config,
        )
        best = min(best, value)
        beta = min(beta, value)
        if beta <= alpha or state.timed_out:
            break
    return best


def pick_move(
    ranked: list[ScoredMove], difficulty: Difficulty, rng: random.Random
) -> Move:
    """Best move, or (easy/medium, some of the time) a uniform pick among the best few"""
    top_n, probability = DIFFICULTY_SPREAD[difficulty]
    if top_n > 1 and len(ranked) > 1 and rng.random() < probability:
        return rng.choice(ranked[:top_n]).move
    return ranked[0].move


def select_move(
    board: Board,
    side: Side,
    config: BotConfig = BotConfig(),
    en_passant: Optional[EnPassantTarget] = None,
    rng: Optional[random.Random] = None,
) -> SearchResult:
    """
    Search every legal root move and pick one according to the difficulty.

    The root always looks at the full move list. If the budget runs out, the moves searched so far are ranked.
    A root move whose own search was cut short is only kept when nothing else has been scored:
    its value is bounded by the replies searched so far, not by all of them.
    """
    rng = rng or random.Random(config.seed)
    deadline = Deadline(config.time_budget_ms)
    state = SearchState(deadline, node_check_interval=config.node_check_interval)

    moves = legal_moves(board, side, en_passant)
    if not moves:
        logger.info("no legal moves for %s", side.name.lower())
        return SearchResult(None, None, 0, deadline.elapsed_ms(), completed=True)

    scored: list[ScoredMove] = []
    for move in moves:
        if scored and state.timed_out:
            break
        result = _play(board, move, en_passant)
        value = minimax(
            result.board,
            config.max_depth - 1,
            -INFINITY,
            INFINITY,
            False,
            side,
            result.en_passant_target,
            state,
            config,
        )
        if scored and state.timed_out:
            logger.debug("discarding partially searched root move %s", move.to_uci())
            break
        value += personality_bonus(board, move, side, config.personality)
        scored.append(ScoredMove(move, value))

    # sorted() is stable: on equal scores the earlier generated move stays in front
    ranked = sorted(scored, key=lambda scored_move: scored_move.score, reverse=True)
    best_move = pick_move(ranked, config.difficulty, rng)
    search_result = SearchResult(
        best_move=best_move,
        score=ranked[0].score,
        nodes=state.nodes,
        elapsed_ms=deadline.elapsed_ms(),
        completed=not state.timed_out,
        ranked=ranked,
    )
    logger.debug(
        "search for %s: %s (score %s) after %d nodes in %d ms%s",
        side.name.lower(),
        best_move.to_uci(),
        search_result.score,
        search_result.nodes,
        search_result.elapsed_ms,
        "" if search_result.completed else " (budget exhausted)",
    )
    return search_result


def select_bot_move(
    board: Board,
    side: Side,
    config: BotConfig = BotConfig(),
    en_passant: Optional[EnPassantTarget] = None,
) -> Optional[Move]:
    """
    The bot's move, always within the outer ceiling.
    ----

    * no legal moves --> None (checkmate / stalemate should already have been detected by the caller)
    * search raises --> first legal move
    * search exceeds the outer ceiling --> uniformly random legal move
    """
    moves = legal_moves(board, side, en_passant)
    if not moves:
        return None

    rng = random.Random(config.seed)
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="bot-search")
    try:
        future = executor.submit(
            select_move, board, side, config, en_passant, random.Random(config.seed)
        )
        result = future.result(timeout=config.outer_deadline_ms / 1000)
    except FuturesTimeoutError:
        logger.warning(
            "bot search exceeded %d ms, playing a random move",
            config.outer_deadline_ms,
        )
        return rng.choice(moves)
    except Exception:
        logger.exception("bot search failed, playing the first legal move")
        return moves[0]
    finally:
        # never block on an abandoned search
        executor.shutdown(wait=False)

    return result.best_move or moves[0]
