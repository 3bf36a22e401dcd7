"""Heuristic classification of transcript markup into dialogue and scene cues.

Transcript pages carry no usable schema: a transcript body is a run of text
separated by ``<br>`` line breaks, with speaker names, stage directions and
end markers told apart only by how each paragraph starts. Each paragraph goes
through the rules below in order and the first rule that claims it decides its
fate, even when that rule then produces nothing:

1. starts with ``<em`` or ``(``: scene cue, tags and one layer of
   parentheses stripped;
2. starts with ``[`` and ends with ``]``: scene cue, kept verbatim;
3. contains ``:``: dialogue split on the first colon;
4. starts with ``<strong class="text-strong">`` and contains ``</strong>:``:
   dialogue split on the closing tag.

Dialogue with an empty speaker or line, and paragraphs no rule claims, are
dropped. Drops are expected (navigation text, credits, stray markup) and are
only logged, or kept as ``Unclassified`` entries when asked.

Colon dialogue keeps only the text between the first and second colon, so
``NARRATOR: It was 10:30`` becomes the line ``It was 10``.
"""

from __future__ import annotations

import html
import logging
import re
from typing import Callable, List, Optional, Tuple

from . import config_constants, models
from .markup import MarkupFetcher
from .outcome import Failure, Outcome, Success

logger = logging.getLogger(__name__)

# html.parser serialises <br> as <br/>; all spellings are the same line break
LINE_BREAK_PATTERN = re.compile(r"<br\s*/?>", re.IGNORECASE)
TAG_PATTERN = re.compile(r"<[^>]*>")
STRONG_SPEAKER_OPEN = '<strong class="text-strong">'
STRONG_SPEAKER_CLOSE = "</strong>:"


def strip_markup(text: str) -> str:
    """Remove tags, decode entities and trim."""
    return html.unescape(TAG_PATTERN.sub("", text)).strip()


def split_paragraphs(fragment: str) -> List[str]:
    """Split a transcript fragment on line breaks, trimming and dropping blanks."""
    paragraphs = (part.strip() for part in LINE_BREAK_PATTERN.split(fragment))
    return [p for p in paragraphs if p]


def _is_prefixed_cue(paragraph: str) -> bool:
    return paragraph.startswith("<em") or paragraph.startswith("(")


def _prefixed_cue(paragraph: str) -> Optional[models.ScriptEntry]:
    text = strip_markup(paragraph)
    if text.startswith("("):
        text = text[1:]
    if text.endswith(")"):
        text = text[:-1]
    return models.SceneCue(text=text.strip())


def _is_bracket_marker(paragraph: str) -> bool:
    return paragraph.startswith("[") and paragraph.endswith("]")


def _bracket_marker(paragraph: str) -> Optional[models.ScriptEntry]:
    return models.SceneCue(text=paragraph)


def _dialogue(character: str, line: str) -> Optional[models.ScriptEntry]:
    character = strip_markup(character)
    line = strip_markup(line)
    if not character or not line:
        return None
    return models.Dialogue(character=character, line=line)


def _is_colon_dialogue(paragraph: str) -> bool:
    return ":" in paragraph


def _colon_dialogue(paragraph: str) -> Optional[models.ScriptEntry]:
    # Only the segment between the first and second colon is kept.
    parts = paragraph.split(":")
    character, line = parts[0], parts[1]
    return _dialogue(character, line)


def _is_strong_dialogue(paragraph: str) -> bool:
    return paragraph.startswith(STRONG_SPEAKER_OPEN) and STRONG_SPEAKER_CLOSE in paragraph


def _strong_dialogue(paragraph: str) -> Optional[models.ScriptEntry]:
    parts = paragraph.split(STRONG_SPEAKER_CLOSE)
    character, line = parts[0], parts[1]
    return _dialogue(character, line)


Rule = Tuple[str, Callable[[str], bool], Callable[[str], Optional[models.ScriptEntry]]]

RULES: Tuple[Rule, ...] = (
    ("prefixed_cue", _is_prefixed_cue, _prefixed_cue),
    ("bracket_marker", _is_bracket_marker, _bracket_marker),
    ("colon_dialogue", _is_colon_dialogue, _colon_dialogue),
    ("strong_dialogue", _is_strong_dialogue, _strong_dialogue),
)


def classify_paragraph(paragraph: str) -> Optional[models.ScriptEntry]:
    """Classify one trimmed paragraph; None means the paragraph is dropped."""
    for name, matches, build in RULES:
        if matches(paragraph):
            entry = build(paragraph)
            if entry is None:
                logger.debug("Rule %s claimed but produced nothing: %r", name, paragraph[:80])
            return entry
    logger.debug("No rule matched paragraph: %r", paragraph[:80])
    return None


def classify_markup(fragment: str, *, keep_unclassified: bool = False) -> models.Script:
    """Classify a transcript fragment into an ordered script.

    Never raises. Entries follow source paragraph order; dropped paragraphs are
    omitted unless ``keep_unclassified`` is set.
    """
    script: models.Script = []
    dropped = 0
    for paragraph in split_paragraphs(fragment):
        entry = classify_paragraph(paragraph)
        if entry is None:
            dropped += 1
            if keep_unclassified:
                script.append(models.Unclassified(text=strip_markup(paragraph)))
            continue
        script.append(entry)
    if dropped:
        logger.debug("Dropped %s unclassified paragraph(s)", dropped)
    return script


def classify(fragment: str, *, keep_unclassified: bool = False) -> Outcome[models.Script]:
    """Outcome-returning form of `classify_markup` for uniform batch handling."""
    return Success(classify_markup(fragment, keep_unclassified=keep_unclassified))


async def fetch_script(
    episode: models.EpisodeRef,
    fetcher: MarkupFetcher,
    *,
    content_selector: str = config_constants.DEFAULT_CONTENT_SELECTOR,
    keep_unclassified: bool = False,
) -> Outcome[models.Script]:
    """Fetch an episode's transcript page and classify its content region.

    A page without a content region yields an empty script. Only fetch
    failures produce a ``Failure``.
    """
    result = await fetcher.fetch_markup(episode.url)
    if isinstance(result, Failure):
        return result.with_context(f"get_script error: {episode.title}")

    content_html = result.value.inner_html(content_selector)
    if content_html is None:
        logger.warning(f"No content region {content_selector!r} found for {episode.title}")
        script: models.Script = []
    else:
        script = classify_markup(content_html, keep_unclassified=keep_unclassified)

    logger.info(f"Script ready: {episode.title} ({len(script)} entries)")
    return Success(script)
