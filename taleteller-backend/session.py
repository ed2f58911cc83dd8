"""Client-side writing session: story state plus the two AI workflows.

All state for one session lives in a single ``SessionState`` record so a
reset is one assignment. Network calls are awaited one at a time per
workflow; each workflow stamps its requests with a generation number and
drops any response that comes back after the session has moved on.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from client import StoryAPIClient
from errors import UpstreamError, ValidationError
from exporter import DocumentExporter, ExportedDocument
from schemas import Choice, SuggestionSet
from story_model import MODES, OUTPUT_FORMATS, Scene, Story

log = logging.getLogger("taleteller")


@dataclass
class SessionState:
    mode: Optional[str] = None
    output_format: str = "text"
    story: Story = field(default_factory=Story)
    input_text: str = ""
    suggestions: Optional[SuggestionSet] = None
    choices: Optional[List[Choice]] = None
    editing_scene_id: Optional[int] = None
    edited_text: str = ""
    illustrations: Dict[int, bytes] = field(default_factory=dict)


class _Workflow:

    def __init__(self, session: "StorySession"):
        self._session = session
        self._generation = 0
        self.loading = False

    def invalidate(self):
        """Forget any request in flight; its response will be ignored."""
        self._generation += 1
        self.loading = False

    def _begin(self) -> Optional[int]:
        if self.loading:
            log.info("%s: request already in flight, ignoring", type(self).__name__)
            return None
        self.loading = True
        return self._generation

    def _finish(self, generation: int) -> bool:
        """Clear the in-flight flag; False when the response is stale."""
        if generation != self._generation:
            log.info("%s: discarding stale response", type(self).__name__)
            return False
        self.loading = False
        return True


class SuggestionWorkflow(_Workflow):

    async def check(self, text: str, mode: str) -> Optional[SuggestionSet]:
        if not text or not text.strip():
            raise ValidationError("Write something before checking it")
        if not mode:
            raise ValidationError("Choose a story mode first")
        generation = self._begin()
        if generation is None:
            return None

        try:
            result = await self._session.api.grammar_check(text, mode)
        except UpstreamError:
            if self._finish(generation):
                raise
            return None
        except BaseException:
            self._finish(generation)
            raise
        if not self._finish(generation):
            return None

        self._session.state.suggestions = result
        return result

    def accept(self):
        state = self._session.state
        if state.suggestions and state.suggestions.improved_version:
            state.input_text = state.suggestions.improved_version
        state.suggestions = None

    def dismiss(self):
        self._session.state.suggestions = None


class BranchState(str, Enum):
    IDLE = "idle"
    REQUESTING_CHOICES = "requesting_choices"
    CHOICES_READY = "choices_ready"
    REQUESTING_CONTINUATION = "requesting_continuation"


class BranchWorkflow(_Workflow):

    def __init__(self, session: "StorySession"):
        super().__init__(session)
        self.state = BranchState.IDLE

    def invalidate(self):
        super().invalidate()
        self.state = BranchState.IDLE

    async def request_choices(self) -> Optional[List[Choice]]:
        session_state = self._session.state
        story = session_state.story
        if len(story) == 0:
            raise ValidationError("Please add at least one scene first!")
        if not session_state.mode:
            raise ValidationError("Choose a story mode first")
        generation = self._begin()
        if generation is None:
            return None
        self.state = BranchState.REQUESTING_CHOICES

        try:
            choices = await self._session.api.generate_choices(
                story.render_context(), session_state.mode, story.current_scene
            )
            if not choices:
                log.error("generate choices: backend returned an empty batch")
                raise UpstreamError("Failed to generate choices")
        except UpstreamError:
            if not self._finish(generation):
                return None
            session_state.choices = None
            self.state = BranchState.IDLE
            raise
        except BaseException:
            if self._finish(generation):
                session_state.choices = None
                self.state = BranchState.IDLE
            raise
        if not self._finish(generation):
            return None

        session_state.choices = choices
        self.state = BranchState.CHOICES_READY
        return choices

    async def select_choice(self, choice: Choice) -> Optional[Scene]:
        if self.state != BranchState.CHOICES_READY or self.loading:
            return None
        session_state = self._session.state
        story = session_state.story
        generation = self._begin()
        self.state = BranchState.REQUESTING_CONTINUATION

        try:
            continuation = await self._session.api.continue_scene(
                story.render_context(), session_state.mode, choice.description
            )
            if not continuation or not continuation.strip():
                log.error("continue scene: backend returned an empty continuation")
                raise UpstreamError("Failed to continue scene")
        except UpstreamError:
            if not self._finish(generation):
                return None
            self.state = BranchState.CHOICES_READY
            raise
        except BaseException:
            if self._finish(generation):
                self.state = BranchState.CHOICES_READY
            raise
        if not self._finish(generation):
            return None

        scene = story.append(continuation, origin_choice=choice.title)
        session_state.choices = None
        self.state = BranchState.IDLE
        return scene

    def cancel(self):
        if self.state != BranchState.CHOICES_READY:
            return
        self._session.state.choices = None
        self.state = BranchState.IDLE


class StorySession:
    """One user's writing session against the backend."""

    def __init__(self, api: StoryAPIClient = None, exporter: DocumentExporter = None):
        self._owns_api = api is None
        self.api = api or StoryAPIClient()
        self.exporter = exporter or DocumentExporter()
        self.state = SessionState()
        self.suggestion = SuggestionWorkflow(self)
        self.branch = BranchWorkflow(self)

    async def aclose(self):
        # A client passed in by the caller stays open; they own it
        if self._owns_api:
            await self.api.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    def start(self, mode: str, output_format: str = "text"):
        if mode not in MODES:
            raise ValidationError(f"Unknown story mode: {mode}")
        if output_format not in OUTPUT_FORMATS:
            raise ValidationError(f"Unknown output format: {output_format}")
        self.reset()
        self.state.mode = mode
        self.state.output_format = output_format
        log.info("Session started in %s mode (%s)", mode, output_format)

    def reset(self):
        self.state = SessionState()
        self.suggestion.invalidate()
        self.branch.invalidate()

    async def check_input(self) -> Optional[SuggestionSet]:
        return await self.suggestion.check(self.state.input_text, self.state.mode)

    def add_scene(self) -> Optional[Scene]:
        scene = self.state.story.append(self.state.input_text)
        if scene is None:
            return None
        self.state.input_text = ""
        self.state.suggestions = None
        return scene

    def begin_edit(self, scene_id: int):
        scene = self.state.story.get(scene_id)
        if scene is None:
            return
        self.state.editing_scene_id = scene.id
        self.state.edited_text = scene.text

    def save_edit(self):
        if self.state.editing_scene_id is None:
            return
        self.state.story.edit(self.state.editing_scene_id, self.state.edited_text)
        self.state.editing_scene_id = None
        self.state.edited_text = ""

    def delete_scene(self, scene_id: int):
        self.state.story.delete(scene_id)
        self.state.illustrations.pop(scene_id, None)
        if self.state.editing_scene_id == scene_id:
            self.state.editing_scene_id = None
            self.state.edited_text = ""

    async def illustrate(self, scene_id: int) -> Optional[bytes]:
        state = self.state
        scene = state.story.get(scene_id)
        if scene is None:
            return None
        image = await self.api.generate_image(f"{state.mode} story illustration: {scene.text}")
        if self.state is not state or state.story.get(scene_id) is None:
            log.info("illustrate: scene %s is gone, dropping image", scene_id)
            return None
        state.illustrations[scene_id] = image
        return image

    def export(self) -> ExportedDocument:
        if not self.state.mode:
            raise ValidationError("Choose a story mode first")
        return self.exporter.export(self.state.story, self.state.mode)
