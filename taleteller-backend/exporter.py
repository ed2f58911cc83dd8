"""Render a story as a paginated PDF.

Layout follows a fixed cursor model: every line is placed at an explicit
y position (mm from the top) and a new page starts whenever the cursor has
passed the page bottom. Body text is wrapped by measured string width, so
the same story and mode always give the same pages.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, NamedTuple

from fpdf import FPDF

from story_model import Story

log = logging.getLogger("taleteller")

# Core PDF fonts only cover Latin-1; fold the usual typography first
_TYPOGRAPHY = str.maketrans({
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2013": "-",
    "\u2014": "-",
    "\u2026": "...",
    "\u00a0": " ",
})

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class PageLayout:
    font: str = "Helvetica"
    margin: float = 20
    top: float = 20
    page_bottom: float = 270
    title_size: int = 20
    title_gap: float = 15
    header_size: int = 14
    header_gap: float = 10
    body_size: int = 11
    line_height: float = 7
    scene_gap: float = 10


class PlacedLine(NamedTuple):
    page: int
    y: float
    text: str
    font_size: int


@dataclass
class ExportedDocument:
    filename: str
    title: str
    content: bytes
    lines: List[PlacedLine] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return max((line.page for line in self.lines), default=0)


def to_latin1(text: str) -> str:
    return text.translate(_TYPOGRAPHY).encode("latin-1", "replace").decode("latin-1")


def wrap_text(pdf: FPDF, text: str, max_width: float) -> List[str]:
    """Split `text` into lines no wider than `max_width` in the current font."""
    lines = []
    for paragraph in text.split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue
        line = ""
        for word in words:
            candidate = f"{line} {word}" if line else word
            if pdf.get_string_width(candidate) <= max_width:
                line = candidate
                continue
            if line:
                lines.append(line)
            # A single word wider than the column is cut by characters;
            # one character too wide for it is left to overflow
            while len(word) > 1 and pdf.get_string_width(word) > max_width:
                cut = len(word) - 1
                while cut > 1 and pdf.get_string_width(word[:cut]) > max_width:
                    cut -= 1
                lines.append(word[:cut])
                word = word[cut:]
            line = word
        lines.append(line)
    return lines


class DocumentExporter:

    def __init__(self, layout: PageLayout = None):
        self.layout = layout or PageLayout()

    def export(self, story: Story, mode: str) -> ExportedDocument:
        layout = self.layout
        title = to_latin1(f"{mode.upper()} Story")
        scenes = list(story)

        pdf = FPDF(unit="mm", format="A4")
        pdf.set_auto_page_break(False)
        pdf.set_title(title)
        # Pinned so repeated exports of one story are identical
        pdf.set_creation_date(scenes[0].timestamp if scenes else _EPOCH)
        pdf.add_page()
        max_width = pdf.w - 2 * layout.margin

        placed: List[PlacedLine] = []
        y = layout.top

        def place(text: str, size: int):
            pdf.set_font(layout.font, size=size)
            if text:
                pdf.text(layout.margin, y, text)
            placed.append(PlacedLine(pdf.page, y, text, size))

        def next_page_if_full():
            nonlocal y
            if y > layout.page_bottom:
                pdf.add_page()
                y = layout.top

        place(title, layout.title_size)
        y += layout.title_gap

        for index, scene in enumerate(scenes, start=1):
            next_page_if_full()
            place(f"Scene {index}", layout.header_size)
            y += layout.header_gap

            pdf.set_font(layout.font, size=layout.body_size)
            for line in wrap_text(pdf, to_latin1(scene.text), max_width):
                next_page_if_full()
                place(line, layout.body_size)
                y += layout.line_height
            y += layout.scene_gap

        document = ExportedDocument(
            filename=f"{mode}-story.pdf",
            title=title,
            content=bytes(pdf.output()),
            lines=placed,
        )
        log.info("Exported %d scenes to %s (%d pages)", len(scenes), document.filename, document.page_count)
        return document
