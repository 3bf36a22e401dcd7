"""PDF rendering of classified scripts.

Each episode becomes ``<output_dir>/season<S>/<E>.<name>.pdf``. The document is
laid out with reportlab's platypus engine and streamed into an opened file; the
render only counts as done once both the layout has been finalized and the
stream has been flushed to storage (see ``CompletionJoin``).

Raw titles that are not ``<season>x<episode> - <name>`` are rejected before
anything touches the filesystem.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Callable, Dict, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import Flowable, Paragraph, SimpleDocTemplate, Spacer

from . import filesystem, models
from .completion import CompletionJoin
from .exceptions import RenderError, StorageError, TitleValidationError
from .outcome import Failure, Outcome, Success

logger = logging.getLogger(__name__)

# Page geometry (points)
PAGE_SIZE = A4
MARGIN_TOP = 50
MARGIN_BOTTOM = 50
MARGIN_LEFT = 60
MARGIN_RIGHT = 60

# Typography
BASE_FONT = "Times-Roman"
TITLE_FONT = "Helvetica-Bold"
TITLE_FONT_SIZE = 14
BODY_FONT = "Helvetica"
SPEAKER_FONT = "Helvetica-Bold"
CUE_FONT = "Helvetica-Oblique"
BODY_FONT_SIZE = 10
BODY_LINE_GAP = 6
LINE_HEIGHT_FACTOR = 1.2

FINALIZED = "finalized"
FLUSHED = "flushed"


def parse_episode_title(raw_title: str) -> models.EpisodeIdentity:
    """Parse ``<season>x<episode> - <name>`` into an ``EpisodeIdentity``.

    The season ends at the first ``x`` and the episode number at the first
    `` - `` after it, so names containing either ("Fox - Part 2") survive.

    Raises:
        TitleValidationError: If the title has no ``x``, no `` - `` separator,
            or an empty season, episode number or name.
    """
    season, sep, rest = raw_title.partition("x")
    if not sep:
        raise TitleValidationError(raw_title)
    episode_number, sep, name = rest.partition(" - ")
    if not sep:
        raise TitleValidationError(raw_title, "missing ' - ' before episode name")
    season = season.strip()
    episode_number = episode_number.strip()
    if not season or not episode_number or not name.strip():
        raise TitleValidationError(raw_title, "incomplete episode title")
    return models.EpisodeIdentity(
        season=season,
        episode_number=episode_number,
        normalized_name=name.replace(" ", "_"),
    )


def format_scene_cue(text: str) -> str:
    """Wrap a cue in parentheses unless it is a bracketed marker like ``[END]``."""
    if text.startswith("[") and text.endswith("]"):
        return text
    return f"({text})"


def build_styles() -> Dict[str, ParagraphStyle]:
    body_leading = BODY_FONT_SIZE * LINE_HEIGHT_FACTOR
    base = ParagraphStyle("base", fontName=BASE_FONT, fontSize=BODY_FONT_SIZE, leading=body_leading)
    return {
        "base": base,
        "title": ParagraphStyle(
            "title",
            parent=base,
            fontName=TITLE_FONT,
            fontSize=TITLE_FONT_SIZE,
            leading=TITLE_FONT_SIZE * LINE_HEIGHT_FACTOR,
            alignment=TA_CENTER,
        ),
        "dialogue": ParagraphStyle(
            "dialogue", parent=base, fontName=BODY_FONT, leading=body_leading + BODY_LINE_GAP
        ),
        "cue": ParagraphStyle(
            "cue", parent=base, fontName=CUE_FONT, leading=body_leading + BODY_LINE_GAP
        ),
    }


def build_story(
    raw_title: str,
    script: models.Script,
    styles: Optional[Dict[str, ParagraphStyle]] = None,
) -> List[Flowable]:
    """Lay out a title and a script as platypus flowables.

    Dialogue gets one blank line before it and a bold ``speaker:`` prefix; scene
    cues are set in italics followed by half a blank line. ``Unclassified``
    entries are not rendered.
    """
    styles = styles or build_styles()
    title_style = styles["title"]
    body_leading = styles["base"].leading
    story: List[Flowable] = [
        Paragraph(escape(raw_title), title_style),
        Spacer(1, title_style.leading),
    ]
    for entry in script:
        if isinstance(entry, models.Dialogue):
            story.append(Spacer(1, body_leading))
            story.append(
                Paragraph(
                    f'<font name="{SPEAKER_FONT}">{escape(entry.character)}: </font>'
                    f"{escape(entry.line)}",
                    styles["dialogue"],
                )
            )
        elif isinstance(entry, models.SceneCue):
            story.append(Paragraph(escape(format_scene_cue(entry.text)), styles["cue"]))
            story.append(Spacer(1, body_leading / 2))
    return story


class DocumentStream:
    """Binary write stream for one document.

    reportlab writes into it like any file object; ``finish()`` flushes the
    data to storage, closes the handle and fires ``on_finish``.
    """

    def __init__(self, handle, path: str, on_finish: Optional[Callable[[], None]] = None) -> None:
        self._handle = handle
        self.name = path
        self._on_finish = on_finish
        self.finished = False

    @classmethod
    def open(cls, path: str, on_finish: Optional[Callable[[], None]] = None) -> "DocumentStream":
        return cls(open(path, "wb"), path, on_finish)

    def write(self, data: bytes) -> int:
        return self._handle.write(data)

    def flush(self) -> None:
        self._handle.flush()

    def finish(self) -> None:
        self._handle.flush()
        os.fsync(self._handle.fileno())
        self._handle.close()
        self.finished = True
        if self._on_finish is not None:
            self._on_finish()

    def abort(self) -> None:
        """Close the handle without signalling completion."""
        if self._handle.closed:
            return
        try:
            self._handle.close()
        except OSError as exc:
            logger.debug("Error closing aborted stream %s: %s", self.name, exc)


def _build_document(stream: DocumentStream, raw_title: str, story: List[Flowable]) -> None:
    doc = SimpleDocTemplate(
        stream,
        pagesize=PAGE_SIZE,
        topMargin=MARGIN_TOP,
        bottomMargin=MARGIN_BOTTOM,
        leftMargin=MARGIN_LEFT,
        rightMargin=MARGIN_RIGHT,
        title=raw_title,
    )
    doc.build(story)


async def render(raw_title: str, script: models.Script, output_dir: str) -> Outcome[str]:
    """Render ``script`` for the episode ``raw_title`` under ``output_dir``.

    Never raises. Returns the written document path, or a ``Failure`` whose
    cause is a ``TitleValidationError``, ``StorageError`` or ``RenderError``.
    """
    context = f"pdf_saver error: {raw_title}"
    try:
        identity = parse_episode_title(raw_title)
    except TitleValidationError as exc:
        logger.info(f"Skipping non-episode title: {raw_title}")
        return Failure.from_exception(context, exc)

    path = filesystem.build_document_path(output_dir, identity)
    try:
        await asyncio.to_thread(filesystem.provision_document_path, path)
    except OSError as exc:
        return Failure.from_exception(
            context,
            StorageError(f"Failed to provision output location: {exc}", path=path, title=raw_title),
        )

    loop = asyncio.get_running_loop()
    completion = CompletionJoin(FINALIZED, FLUSHED)
    story = build_story(raw_title, script)

    try:
        stream = await asyncio.to_thread(
            DocumentStream.open,
            path,
            lambda: loop.call_soon_threadsafe(completion.signal, FLUSHED),
        )
    except OSError as exc:
        return Failure.from_exception(
            context, StorageError(f"Failed to open write stream: {exc}", path=path, title=raw_title)
        )

    try:
        await asyncio.to_thread(_build_document, stream, raw_title, story)
    except OSError as exc:
        stream.abort()
        return Failure.from_exception(
            context, StorageError(f"Write stream error: {exc}", path=path, title=raw_title)
        )
    # reportlab raises plain ValueError/LayoutError for content it cannot lay out
    except Exception as exc:
        stream.abort()
        return Failure.from_exception(
            context, RenderError(f"Failed to lay out document: {exc}", title=raw_title)
        )
    completion.signal(FINALIZED)

    try:
        await asyncio.to_thread(stream.finish)
    except OSError as exc:
        stream.abort()
        return Failure.from_exception(
            context, StorageError(f"Failed to flush document: {exc}", path=path, title=raw_title)
        )

    await completion.wait()
    relative = os.path.relpath(path, output_dir)
    logger.info(f"Document written: {relative}")
    return Success(path)


__all__ = [
    "CompletionJoin",
    "DocumentStream",
    "build_story",
    "build_styles",
    "format_scene_cue",
    "parse_episode_title",
    "render",
]
