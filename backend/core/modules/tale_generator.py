"""
DSPy Module that turns a compiled generation request into tale text.

This is the only place that calls the external text-generation service.
Transient network errors are retried by llm_retry; anything else, or an
empty answer, surfaces as UpstreamGenerationFailure.
"""

import logging

import dspy

from backend.config import llm_retry
from ..errors import UpstreamGenerationFailure
from ..generation_compiler import CompiledGenerationRequest
from ..signatures.tale_writer import TaleWriterSignature

logger = logging.getLogger(__name__)


class TaleGenerator(dspy.Module):
    """
    Write a tale from a CompiledGenerationRequest.

    Args:
        lm: Optional explicit LM to use. If provided, bypasses global
            dspy.configure() state. Useful for testing and explicit control.
    """

    def __init__(self, lm: dspy.LM = None):
        super().__init__()
        self.write = dspy.Predict(TaleWriterSignature)
        self._lm = lm

    def forward(self, compiled: CompiledGenerationRequest) -> str:
        """Generate the tale text. Blocking; run it in a thread from async code."""
        prompt = compiled.to_prompt()

        try:
            if self._lm is not None:
                with dspy.context(lm=self._lm):
                    result = llm_retry(self.write)(prompt=prompt)
            else:
                result = llm_retry(self.write)(prompt=prompt)
        except Exception as e:
            logger.error(f"Error calling text generator: {e}")
            raise UpstreamGenerationFailure() from e

        tale = (getattr(result, "tale", None) or "").strip()
        if not tale:
            raise UpstreamGenerationFailure("Text generator returned an empty tale")

        return tale
