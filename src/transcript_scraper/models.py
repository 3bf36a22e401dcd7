from __future__ import annotations

from dataclasses import dataclass
from typing import List, Union


@dataclass(frozen=True)
class EpisodeRef:
    """Reference to one transcript page found on a listing page.

    Attributes:
        title: Raw topic title as shown on the listing (e.g. "1x05 - The Pilot").
        url: Absolute URL of the transcript page.

    Example:
        >>> ref = EpisodeRef(
        ...     title="1x05 - The Pilot Episode",
        ...     url="https://transcripts.foreverdreaming.org/viewtopic.php?t=123",
        ... )
    """

    title: str
    url: str


@dataclass(frozen=True)
class Dialogue:
    """One speaker turn."""

    character: str
    line: str


@dataclass(frozen=True)
class SceneCue:
    """Stage direction, scene marker or bracketed annotation such as ``[END]``."""

    text: str


@dataclass(frozen=True)
class Unclassified:
    """Paragraph that matched no classification rule.

    Only produced when the classifier is asked to keep dropped paragraphs;
    renderers skip these entries.
    """

    text: str


ScriptEntry = Union[Dialogue, SceneCue, Unclassified]
Script = List[ScriptEntry]


@dataclass(frozen=True)
class EpisodeIdentity:
    """Season/episode/name parsed from a raw ``<season>x<episode> - <name>`` title.

    Attributes:
        season: Season part before the ``x`` (e.g. "1").
        episode_number: Episode part between ``x`` and `` - `` (e.g. "05").
        normalized_name: Episode name with spaces replaced by underscores.
    """

    season: str
    episode_number: str
    normalized_name: str
