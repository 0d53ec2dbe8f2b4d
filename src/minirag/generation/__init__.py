"""Grounded answer generation."""

from minirag.generation.answerer import ANSWER_PROMPT, PASSAGE_SEPARATOR, Answerer

__all__ = ["ANSWER_PROMPT", "PASSAGE_SEPARATOR", "Answerer"]
