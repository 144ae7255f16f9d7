"""Cosine similarity scoring and relevance ranking of stored turns."""

from collections.abc import Iterable, Sequence

import numpy as np
from loguru import logger

from chatmem.memory.types import Turn


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Compute the cosine similarity between two vectors.

    A zero-norm vector has no direction, so its similarity to anything is 0.0.

    Args:
        a (Sequence[float]): First vector.
        b (Sequence[float]): Second vector.

    Returns:
        float: Similarity in [-1, 1].

    Raises:
        ValueError: If the vectors differ in shape.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(
            f"Vector shape mismatch: {va.shape} != {vb.shape}."
        )

    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


def rank_turns(
    query: Sequence[float],
    turns: Iterable[Turn],
    threshold: float,
    limit: int,
) -> list[tuple[Turn, float]]:
    """
    Rank turns by similarity to the query embedding.

    Turns without an embedding are skipped. Only turns scoring strictly above
    ``threshold`` survive; equal scores keep chronological order.

    Args:
        query (Sequence[float]): Embedding of the incoming message.
        turns (Iterable[Turn]): Stored turns, oldest first.
        threshold (float): Exclusive lower bound on similarity.
        limit (int): Maximum number of turns to return.

    Returns:
        list[tuple[Turn, float]]: (turn, similarity) pairs, most similar first.
    """
    scored: list[tuple[Turn, float]] = []
    for turn in turns:
        if turn.embedding is None:
            logger.debug("Skipping {} turn without embedding", turn.role.value)
            continue
        score = cosine_similarity(query, turn.embedding)
        if score > threshold:
            scored.append((turn, score))

    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:limit]


def format_turns(ranked: Iterable[tuple[Turn, float]]) -> str:
    """
    Join ranked turns into prompt-ready text.

    Args:
        ranked (Iterable[tuple[Turn, float]]): Output of ``rank_turns``.

    Returns:
        str: One ``"<role>: <content>"`` line per turn.
    """
    return "\n".join(turn.format() for turn, _ in ranked)
