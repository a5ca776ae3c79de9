"""
Tale text generation.

Compiles the request, then runs the blocking DSPy generator in a worker
thread so the event loop stays responsive. Failures are not retried here;
they propagate as UpstreamGenerationFailure.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Optional

from backend.config import GenerationSettings, get_inference_lm
from backend.core.errors import UpstreamGenerationFailure
from backend.core.generation_compiler import GenerationRequest, compile_generation_request
from backend.core.modules.tale_generator import TaleGenerator
from backend.core.types import Principal
from ..logging import tale_logger


@dataclass
class GeneratedTale:
    content: str
    target_word_count: int


class TaleGenerationService:
    """Compile generation requests and hand them to the text generator.

    Args:
        generator: Explicit generator (tests pass a fake). Built lazily from
            settings on first use otherwise.
        settings: LM settings; read from the environment when omitted.
    """

    def __init__(
        self,
        generator: Optional[TaleGenerator] = None,
        settings: Optional[GenerationSettings] = None,
    ):
        self._generator = generator
        self._settings = settings

    def get_generator(self) -> TaleGenerator:
        if self._generator is None:
            try:
                lm = get_inference_lm(self._settings)
            except ValueError as e:
                raise UpstreamGenerationFailure("Text generator is not configured") from e
            self._generator = TaleGenerator(lm=lm)
        return self._generator

    async def generate(self, principal: Principal, request: GenerationRequest) -> GeneratedTale:
        """Generate tale text for an authenticated caller."""
        compiled = compile_generation_request(request)
        tale_logger.generation_started(principal.id, compiled.target_word_count)
        start_time = time.time()

        try:
            generator = self.get_generator()
            content = await asyncio.to_thread(generator, compiled)
        except UpstreamGenerationFailure as e:
            tale_logger.generation_failed(principal.id, e)
            raise

        tale_logger.generation_completed(principal.id, time.time() - start_time)
        return GeneratedTale(content=content, target_word_count=compiled.target_word_count)
