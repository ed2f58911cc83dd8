from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Optional


class WireModel(BaseModel):
    # Wire format is camelCase, Python attributes are snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GrammarCheckRequest(WireModel):
    text: str = ""
    mode: str = ""


class Suggestion(WireModel):
    original: str
    suggested: str
    reason: str = ""


class SuggestionSet(WireModel):
    has_issues: bool = False
    improved_version: Optional[str] = None
    suggestions: List[Suggestion] = []


class ChoicesRequest(WireModel):
    story_context: str = ""
    mode: str = ""
    current_scene: str = ""


class Choice(WireModel):
    id: int
    title: str
    description: str


class ChoicesResponse(WireModel):
    choices: List[Choice]


class ContinueRequest(WireModel):
    story_context: str = ""
    mode: str = ""
    selected_choice: str = ""


class ContinueResponse(WireModel):
    continuation: str


class ImageRequest(WireModel):
    prompt: Optional[str] = ""


class ImageResponse(WireModel):
    image: str


class SceneIn(WireModel):
    text: str
    origin_choice: Optional[str] = None


class ExportRequest(WireModel):
    mode: str = ""
    scenes: List[SceneIn] = []


class ModeInfo(WireModel):
    value: str
    label: str
    description: str


class ModesResponse(WireModel):
    modes: List[ModeInfo]
    output_formats: List[str]


class ErrorResponse(WireModel):
    error: str
