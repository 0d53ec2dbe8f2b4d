"""
Answerer: builds a grounding prompt and asks the LLM once.

The prompt is a fixed template filled with the literal question and the
retrieved passages, joined by a fixed separator in retrieval order.
"""

import asyncio
import logging
from typing import Sequence

from minirag.exceptions import GenerationFailed
from minirag.llm import LLMProtocol

logger = logging.getLogger(__name__)


ANSWER_PROMPT = """You are a subject-matter expert. Answer the question using only the context below.

Question: {question}

Context:
---
{context}
---

Rules:
- Base every statement on the context; no external knowledge
- Quote exact figures, names and terms as they appear
- If the context does not contain the answer, say "I don't have enough information"

Answer:"""

PASSAGE_SEPARATOR = "\n\n---\n\n"


class Answerer:
    """
    Grounded answer generation over retrieved passages.

    Failures of the LLM are raised as GenerationFailed; there is no retry
    and no fallback to returning the passages themselves.
    """

    def __init__(
        self,
        llm: LLMProtocol,
        template: str = ANSWER_PROMPT,
        separator: str = PASSAGE_SEPARATOR,
    ) -> None:
        self.llm = llm
        self.template = template
        self.separator = separator

    def build_prompt(self, question: str, passages: Sequence[str]) -> str:
        """Fill the template with the question and passages, in order."""
        return self.template.format(
            question=question,
            context=self.separator.join(passages),
        )

    async def answer(self, question: str, passages: Sequence[str]) -> str:
        """
        Generate an answer grounded in the passages.

        Args:
            question: The user's question
            passages: Retrieved passage texts, most relevant first

        Returns:
            The LLM output, unchanged

        Raises:
            GenerationFailed: If the LLM call fails
        """
        prompt = self.build_prompt(question, passages)
        logger.debug(f"Generating answer from {len(passages)} passages ({len(prompt)} chars)")

        try:
            # LLM clients are blocking; keep the event loop free
            return await asyncio.to_thread(self.llm.invoke, prompt)
        except Exception as e:
            raise GenerationFailed(f"Generation failed: {e}") from e
