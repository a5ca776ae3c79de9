"""
Compile tale generation parameters into instructions for the text generator.

Pure and deterministic: the same GenerationRequest always yields the same
CompiledGenerationRequest. Nothing here talks to the network.

Fallbacks: an unrecognized length uses the medium column and an
unrecognized age range uses the 9-12 row (and the 9-12 language register).
Tests pin this behavior.
"""

from dataclasses import dataclass

from .types import AgeRange, TaleLength

DEFAULT_AGE_RANGE = AgeRange.MIDDLE_GRADE.value
DEFAULT_LENGTH = TaleLength.MEDIUM.value
DEFAULT_MOOD = "happy"

# Target word count by age range and length
WORD_COUNT_TABLE: dict[str, dict[str, int]] = {
    "3-5": {"short": 200, "medium": 350, "long": 500},
    "6-8": {"short": 350, "medium": 600, "long": 900},
    "9-12": {"short": 500, "medium": 800, "long": 1200},
}

LANGUAGE_INSTRUCTIONS: dict[str, str] = {
    "3-5": (
        "Use simple language, short sentences, and repetition. "
        "The story should be very easy to understand for preschoolers."
    ),
    "6-8": (
        "Use clear language with some more advanced vocabulary. "
        "The story can have more complex plot elements while remaining easy to follow."
    ),
    "9-12": (
        "Use rich vocabulary and more complex sentence structures. "
        "The story can include more nuanced themes and character development."
    ),
}

COMPLETENESS_INSTRUCTION = (
    "Please write a complete, engaging story with a clear beginning, middle, and end. "
    "Include dialogue and descriptive language appropriate for the age group."
)


@dataclass
class GenerationRequest:
    """Parameters a user supplies to generate a tale."""

    title: str
    age_range: str
    topic: str
    main_character: str = ""
    setting: str = ""
    mood: str = DEFAULT_MOOD
    length: str = DEFAULT_LENGTH
    moral_lesson: str = ""


@dataclass(frozen=True)
class PromptSections:
    """Fully resolved instruction sections. Omitted optional sections are empty strings."""

    character: str
    setting: str
    moral: str
    mood: str
    language: str
    core: str


@dataclass(frozen=True)
class CompiledGenerationRequest:
    target_word_count: int
    prompt_sections: PromptSections

    def to_prompt(self) -> str:
        """Join the non-empty sections into the prompt sent to the generator."""
        s = self.prompt_sections
        paragraphs = [
            s.core,
            " ".join(part for part in (s.character, s.setting) if part),
            s.language,
            " ".join(part for part in (s.moral, s.mood) if part),
            f"The story should be around {self.target_word_count} words long.",
            COMPLETENESS_INSTRUCTION,
        ]
        return "\n\n".join(p for p in paragraphs if p)


def target_word_count(age_range: str, length: str) -> int:
    """Look up the target word count, falling back to the 9-12 row and medium column."""
    row = WORD_COUNT_TABLE.get(age_range, WORD_COUNT_TABLE[DEFAULT_AGE_RANGE])
    return row.get(length, row[DEFAULT_LENGTH])


def language_instruction(age_range: str) -> str:
    return LANGUAGE_INSTRUCTIONS.get(age_range, LANGUAGE_INSTRUCTIONS[DEFAULT_AGE_RANGE])


def _optional_sentence(template: str, value: str | None) -> str:
    value = (value or "").strip()
    return template.format(value) if value else ""


def compile_generation_request(request: GenerationRequest) -> CompiledGenerationRequest:
    """Turn generation parameters into a word count and instruction sections."""
    mood = (request.mood or "").strip() or DEFAULT_MOOD

    sections = PromptSections(
        character=_optional_sentence("The main character is {}.", request.main_character),
        setting=_optional_sentence("The story takes place in {}.", request.setting),
        moral=_optional_sentence("The story should teach a moral lesson about {}.", request.moral_lesson),
        mood=f"The overall tone of the story should be {mood}.",
        language=language_instruction(request.age_range),
        core=(
            f'Write an original children\'s tale with the title "{request.title}" '
            f"about {request.topic}. "
            f"The story is for children aged {request.age_range} years."
        ),
    )

    return CompiledGenerationRequest(
        target_word_count=target_word_count(request.age_range, request.length),
        prompt_sections=sections,
    )
