"""In-memory story: an ordered list of scenes plus the narrative modes."""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional


MODES: Dict[str, Dict[str, str]] = {
    "adventure": {"label": "Adventure", "description": "Epic quests and heroic journeys"},
    "horror": {"label": "Horror", "description": "Spine-chilling tales of terror"},
    "fantasy": {"label": "Fantasy", "description": "Magical worlds and mythical creatures"},
    "mystery": {"label": "Mystery", "description": "Puzzles and detective stories"},
    "scifi": {"label": "Sci-Fi", "description": "Futuristic technology and space"},
    "romance": {"label": "Romance", "description": "Love stories and emotional journeys"},
}

OUTPUT_FORMATS = ("text", "text-images")


@dataclass(frozen=True)
class Scene:
    id: int
    text: str
    timestamp: datetime
    origin_choice: Optional[str] = None


@dataclass
class Story:
    scenes: List[Scene] = field(default_factory=list)
    current_scene: str = ""
    _last_id: int = 0

    def __len__(self) -> int:
        return len(self.scenes)

    def __iter__(self) -> Iterator[Scene]:
        return iter(self.scenes)

    def _next_id(self) -> int:
        # Millisecond clock, bumped past the last id so ids never repeat
        self._last_id = max(time.time_ns() // 1_000_000, self._last_id + 1)
        return self._last_id

    def get(self, scene_id: int) -> Optional[Scene]:
        for scene in self.scenes:
            if scene.id == scene_id:
                return scene
        return None

    def append(self, text: str, origin_choice: Optional[str] = None) -> Optional[Scene]:
        if not text or not text.strip():
            return None
        scene = Scene(
            id=self._next_id(),
            text=text,
            timestamp=datetime.now(timezone.utc),
            origin_choice=origin_choice,
        )
        self.scenes.append(scene)
        self.current_scene = text
        return scene

    def edit(self, scene_id: int, new_text: str) -> "Story":
        if not new_text or not new_text.strip():
            return self
        self.scenes = [
            Scene(s.id, new_text, s.timestamp, s.origin_choice) if s.id == scene_id else s
            for s in self.scenes
        ]
        return self

    def delete(self, scene_id: int) -> "Story":
        self.scenes = [s for s in self.scenes if s.id != scene_id]
        return self

    def render_context(self) -> str:
        return "\n\n".join(s.text for s in self.scenes)
