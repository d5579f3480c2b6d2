"""Builds the single generation instruction for an edit request."""

from ..models.schemas import EditRequest

BACKGROUND_REMOVAL_BASE = (
    "Isolate the main subject(s) from the provided image(s) and remove the "
    "background completely. The resulting image should only contain the "
    "subject(s) on a transparent background."
)
SUBJECT_MODIFICATION = " Additionally, modify the subject(s) based on this description: {subject}."

COMPOSITION_BASE = "Using the provided image(s) as a base, generate a new image."
SUBJECT_CLAUSE = " Character description: {subject}."
SCENE_CLAUSE = " Background, space, etc.: {scene}."

PIXEL_SIZE_CLAUSE = (
    " The output image must be exactly {width}px by {height}px. "
    "It is critical to adhere to these dimensions."
)
ASPECT_RATIO_CLAUSE = (
    " It is absolutely critical that the final output image has an aspect "
    "ratio of {ratio}. Recompose the image, extend the scenery, or crop if "
    "necessary to strictly meet this {ratio} aspect ratio. Do not deviate "
    "from this aspect ratio."
)


class PromptBuilder:
    """
    Turns an EditRequest into one instruction string.

    Pure and deterministic. Background removal takes priority over every
    composition field; an explicit pixel size takes priority over the aspect
    ratio, and exactly one of the two dimensional clauses is emitted.
    """

    def build(self, request: EditRequest) -> str:
        if request.background_removal:
            return self._background_removal(request)
        return self._composition(request)

    def _background_removal(self, request: EditRequest) -> str:
        instruction = BACKGROUND_REMOVAL_BASE
        if request.subject_description:
            instruction += SUBJECT_MODIFICATION.format(subject=request.subject_description)
        return instruction

    def _composition(self, request: EditRequest) -> str:
        instruction = COMPOSITION_BASE
        if request.subject_description:
            instruction += SUBJECT_CLAUSE.format(subject=request.subject_description)
        if request.scene_description:
            instruction += SCENE_CLAUSE.format(scene=request.scene_description)

        if request.has_explicit_size:
            instruction += PIXEL_SIZE_CLAUSE.format(
                width=request.target_width,
                height=request.target_height,
            )
        else:
            instruction += ASPECT_RATIO_CLAUSE.format(ratio=request.aspect_ratio.value)

        return instruction
