"""Loading and templating of review prompts."""

import logging
from datetime import date
from enum import Enum
from pathlib import Path
from string import Template

from lgtm_reviewer.errors import PromptError
from lgtm_reviewer.prompts.context_gathering_prompt import CONTEXT_GATHERING_PROMPT
from lgtm_reviewer.prompts.review_prompt import REVIEW_PROMPT

logger = logging.getLogger(__name__)


class PromptType(str, Enum):
    REVIEW = "review"
    CONTEXT_GATHERING = "context_gathering"


_DEFAULT_PROMPTS = {
    PromptType.REVIEW: REVIEW_PROMPT,
    PromptType.CONTEXT_GATHERING: CONTEXT_GATHERING_PROMPT,
}


def _agents_section(repository_instructions: str | None) -> str:
    if not repository_instructions:
        return ""
    return (
        "Repository-specific instructions from the maintainers:\n"
        f"{repository_instructions.strip()}\n"
    )


class PromptManager:
    """Builds the prompts for both review phases.

    Templates use ``string.Template`` placeholders (``$diff``,
    ``$files_list``, ``$agents_section``, ``$analysis_section``,
    ``$current_date``). A custom template file replaces the built-in one
    for its phase.
    """

    def __init__(
        self,
        review_prompt_path: str | Path | None = None,
        context_gathering_prompt_path: str | Path | None = None,
    ) -> None:
        self.review_prompt_path = review_prompt_path
        self.context_gathering_prompt_path = context_gathering_prompt_path

    def load_prompt(self, prompt_type: PromptType) -> str:
        """Load a template from its custom path or fall back to the default.

        Raises:
            PromptError: If the custom file cannot be read
        """
        try:
            prompt_type = PromptType(prompt_type)
        except ValueError as e:
            raise PromptError(f"unknown prompt type: {prompt_type}") from e

        path = (
            self.review_prompt_path
            if prompt_type is PromptType.REVIEW
            else self.context_gathering_prompt_path
        )
        if not path:
            return _DEFAULT_PROMPTS[prompt_type]

        try:
            return Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise PromptError(f"failed to read prompt file {path}: {e}") from e

    def _render(self, prompt_type: PromptType, **values: str) -> str:
        template = Template(self.load_prompt(prompt_type))
        try:
            return template.substitute(values)
        except (KeyError, ValueError) as e:
            raise PromptError(
                f"failed to render {prompt_type.value} prompt template: {e}"
            ) from e

    def build_context_gathering_prompt(
        self,
        diff: str,
        changed_files: list[str] | tuple[str, ...],
        repository_instructions: str | None = None,
    ) -> str:
        """Build the phase-1 prompt."""
        return self._render(
            PromptType.CONTEXT_GATHERING,
            diff=diff,
            files_list="\n- ".join(changed_files),
            agents_section=_agents_section(repository_instructions),
            analysis_section="",
            current_date=_today(),
        )

    def build_review_prompt(
        self,
        diff: str,
        changed_files: list[str] | tuple[str, ...],
        analysis_text: str = "",
        repository_instructions: str | None = None,
    ) -> str:
        """Build the phase-2 prompt, embedding the phase-1 analysis if any."""
        analysis_section = ""
        if analysis_text:
            analysis_section = f"Based on your previous analysis:\n{analysis_text}\n"

        return self._render(
            PromptType.REVIEW,
            diff=diff,
            files_list="\n- ".join(changed_files),
            agents_section=_agents_section(repository_instructions),
            analysis_section=analysis_section,
            current_date=_today(),
        )


def _today() -> str:
    today = date.today()
    return f"{today:%B} {today.day}, {today.year}"
