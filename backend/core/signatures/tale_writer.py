"""
DSPy Signature for writing a complete tale from compiled instructions.

The instructions (title, topic, audience, register, tone, length) are
assembled by the generation compiler; this signature only carries them
to the model and names the output.
"""

import dspy


class TaleWriterSignature(dspy.Signature):
    """
    You are an expert children's story writer. Your task is to write original,
    engaging, and age-appropriate tales for children.

    Follow every instruction in the prompt: the title, the topic, the age
    group and its language register, the tone, and the target length.
    Respond with the story text only. Do not add a preamble, notes, or a
    word count.
    """

    prompt: str = dspy.InputField(
        desc="Instructions describing the tale to write"
    )

    tale: str = dspy.OutputField(
        desc="The complete tale text, ready to read aloud"
    )
