"""Typed process context exchanged with the external process orchestrator."""

from typing import Any

from pydantic import BaseModel, Field

from bookpub.models.chapter import ChapterMetadataInfo

# Named process variables as the orchestrator knows them
VAR_CONTENT_FOUND = "contentFound"
VAR_CONTENT_ERROR_FOUND = "contentErrorFound"
VAR_CHAPTER_LIST = "chapterList"
VAR_RELATED_ISBN = "relatedIsbn"
VAR_INTERRUPT_T1_TIMER_DURATION = "InterruptT1TimerDuration"
VAR_WAIT_2_CHECK_CONTENT_TIMER_DURATION = "Wait2Check4ContentTimerDuration"


class ProcessContext(BaseModel):
    """Variables the orchestrator passes into, and reads back from, the core.

    The core only reads and writes these fields; it does not interpret the
    timer durations.
    """

    content_found: bool = False
    content_error_found: bool = False
    chapter_list: list[ChapterMetadataInfo] = Field(default_factory=list)
    related_isbn: str | None = None
    interrupt_timer_duration: str | None = None
    wait_to_check_content_timer_duration: str | None = None

    def to_variables(self) -> dict[str, Any]:
        """Render the context as the orchestrator's named variables."""
        return {
            VAR_CONTENT_FOUND: self.content_found,
            VAR_CONTENT_ERROR_FOUND: self.content_error_found,
            VAR_CHAPTER_LIST: [chapter.model_dump() for chapter in self.chapter_list],
            VAR_RELATED_ISBN: self.related_isbn,
            VAR_INTERRUPT_T1_TIMER_DURATION: self.interrupt_timer_duration,
            VAR_WAIT_2_CHECK_CONTENT_TIMER_DURATION: self.wait_to_check_content_timer_duration,
        }

    @classmethod
    def from_variables(cls, variables: dict[str, Any]) -> "ProcessContext":
        """Build a context from the orchestrator's named variables.

        Unknown variables are ignored, missing ones take their defaults.
        """
        return cls(
            content_found=bool(variables.get(VAR_CONTENT_FOUND, False)),
            content_error_found=bool(variables.get(VAR_CONTENT_ERROR_FOUND, False)),
            chapter_list=[
                ChapterMetadataInfo(**chapter) for chapter in variables.get(VAR_CHAPTER_LIST) or []
            ],
            related_isbn=variables.get(VAR_RELATED_ISBN),
            interrupt_timer_duration=variables.get(VAR_INTERRUPT_T1_TIMER_DURATION),
            wait_to_check_content_timer_duration=variables.get(
                VAR_WAIT_2_CHECK_CONTENT_TIMER_DURATION
            ),
        )
