"""
Git metadata to color mapping.

Commit frequency drives hue (a blue to red heat map, or purple to orange in
color-blind mode) and recency drives saturation (vivid for fresh files,
faded after a year). Lightness is fixed; the three isometric faces of a
building differ only in lightness.

Everything here is a pure function of its inputs plus the dataset-wide
NormalizationBounds. GitColorMapper bundles those bounds with the functions
so a renderer can carry one value per loaded dataset.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple

from PIL import ImageColor

from .models import CityData, GitMetadata

SECONDS_PER_DAY = 86400
MAX_AGE_DAYS = 365

DEFAULT_HUE = 200
DEFAULT_SATURATION = 70
BASE_LIGHTNESS = 50
SHADE_STEP = 20

DEPRECATED_KEYWORDS = ("Deprecated", "Legacy", "Obsolete", "Old")

RGB = Tuple[int, int, int]


@dataclass(frozen=True)
class HSLColor:
    """A color in HSL space (hue in degrees, saturation/lightness in percent)."""

    hue: float
    saturation: float
    lightness: float

    def css(self) -> str:
        """Format as a CSS ``hsl()`` string, values unclamped."""
        return (
            f"hsl({_fmt(self.hue)}, {_fmt(self.saturation)}%, "
            f"{_fmt(self.lightness)}%)"
        )

    def to_rgb(self) -> RGB:
        """
        Convert to an RGB triple.

        Saturation and lightness are clamped to [0, 100] here, at the output
        boundary, so out-of-range shades still produce a drawable color.
        """
        hue = self.hue % 360
        saturation = min(100.0, max(0.0, self.saturation))
        lightness = min(100.0, max(0.0, self.lightness))
        return ImageColor.getrgb(
            f"hsl({hue:.4f}, {saturation:.4f}%, {lightness:.4f}%)"
        )


@dataclass(frozen=True)
class Shades:
    """Fill colors for the three visible faces of an isometric box."""

    top: HSLColor
    right: HSLColor
    left: HSLColor


@dataclass(frozen=True)
class NormalizationBounds:
    """
    Dataset-wide maxima and date range used to normalize metadata.

    Attributes:
        max_commits: Largest commit count in the dataset (at least 1).
        max_authors: Largest author count in the dataset (at least 1).
        oldest: Earliest last-modified timestamp.
        newest: Latest last-modified timestamp.
    """

    max_commits: int = 1
    max_authors: int = 1
    oldest: Optional[datetime] = None
    newest: Optional[datetime] = None

    @classmethod
    def from_metadata(
        cls, metadata: Iterable[GitMetadata], now: Optional[datetime] = None
    ) -> "NormalizationBounds":
        """Compute bounds over a collection of metadata records."""
        now = now or _utcnow()
        max_commits = 0
        max_authors = 0
        dates = []
        for meta in metadata:
            max_commits = max(max_commits, meta.commits)
            max_authors = max(max_authors, meta.authors)
            if meta.last_modified is not None:
                dates.append(meta.last_modified)

        return cls(
            max_commits=max_commits or 1,
            max_authors=max_authors or 1,
            oldest=min(dates) if dates else now,
            newest=max(dates) if dates else now,
        )


def _fmt(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def age_in_days(timestamp: datetime, now: Optional[datetime] = None) -> float:
    """Fractional days elapsed since ``timestamp``."""
    now = now or _utcnow()
    return (now - timestamp).total_seconds() / SECONDS_PER_DAY


def color_for(
    metadata: Optional[GitMetadata],
    bounds: NormalizationBounds,
    use_frequency: bool = True,
    use_age: bool = True,
    color_blind: bool = False,
    now: Optional[datetime] = None,
) -> HSLColor:
    """
    Map git metadata to a base color.

    Args:
        metadata: Metadata for one class, or None.
        bounds: Dataset normalization bounds.
        use_frequency: Encode commit frequency as hue.
        use_age: Encode recency as saturation.
        color_blind: Use the purple (270) to orange (30) range.
        now: Reference time for age; defaults to the current UTC time.

    Returns:
        HSLColor with lightness fixed at 50.
    """
    hue = DEFAULT_HUE
    saturation = DEFAULT_SATURATION

    if use_frequency and metadata is not None:
        normalized = min(1.0, max(0.0, metadata.commits / bounds.max_commits))
        start = 270 if color_blind else 240
        hue = start - normalized * 240

    if use_age and metadata is not None and metadata.last_modified is not None:
        days = age_in_days(metadata.last_modified, now)
        age_factor = max(0.0, min(1.0, 1 - days / MAX_AGE_DAYS))
        saturation = 20 + age_factor * 50

    return HSLColor(hue, saturation, BASE_LIGHTNESS)


def shades_of(color: HSLColor) -> Shades:
    """Derive top/right/left face colors from a base color."""
    return Shades(
        top=HSLColor(color.hue, color.saturation, color.lightness + SHADE_STEP),
        right=color,
        left=HSLColor(color.hue, color.saturation, color.lightness - SHADE_STEP),
    )


def is_recent(
    metadata: Optional[GitMetadata], days: int = 7, now: Optional[datetime] = None
) -> bool:
    """True if the class changed within the last ``days`` days."""
    if metadata is None or metadata.last_modified is None:
        return False
    return age_in_days(metadata.last_modified, now) <= days


def frequency_label(commits: int) -> str:
    """Describe a commit count in words."""
    if commits <= 0:
        return "No changes"
    if commits == 1:
        return "Single change"
    if commits < 5:
        return "Low activity"
    if commits < 15:
        return "Moderate activity"
    if commits < 50:
        return "High activity"
    return "Very high activity"


def format_relative_date(
    timestamp: Optional[datetime], now: Optional[datetime] = None
) -> str:
    """Format a timestamp as "Today", "3 days ago", "2 months ago" and so on."""
    if timestamp is None:
        return "Unknown"

    days = math.floor(age_in_days(timestamp, now))
    if days <= 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return f"{days // 7} weeks ago"
    if days < 365:
        return f"{days // 30} months ago"
    return f"{days // 365} years ago"


def is_deprecated(class_name: str) -> bool:
    """Check the class name for a deprecation keyword (case-sensitive)."""
    return any(keyword in class_name for keyword in DEPRECATED_KEYWORDS)


def scale_rgb(color: str, factor: float) -> RGB:
    """
    Multiply each channel of a color by ``factor``, capped at 255.

    Used to lighten (factor > 1) or darken (factor < 1) the fixed palette
    colors for the three faces of a box.
    """
    r, g, b = ImageColor.getrgb(color)[:3]
    return (
        int(min(255, r * factor)),
        int(min(255, g * factor)),
        int(min(255, b * factor)),
    )


def scale_hsl(color: HSLColor, factor: float) -> RGB:
    """Same as scale_rgb for an HSL color."""
    r, g, b = color.to_rgb()
    return (
        int(min(255, r * factor)),
        int(min(255, g * factor)),
        int(min(255, b * factor)),
    )


class GitColorMapper:
    """
    Color mapping bound to one dataset's normalization bounds.

    Example:
        >>> mapper = GitColorMapper.from_data(city_data)
        >>> base = mapper.color_for(record.git_metadata)
        >>> faces = mapper.shades_of(base)
    """

    def __init__(self, bounds: NormalizationBounds):
        self.bounds = bounds

    @classmethod
    def from_data(
        cls, data: CityData, now: Optional[datetime] = None
    ) -> Optional["GitColorMapper"]:
        """
        Build a mapper for a dataset.

        Returns None when no class in the dataset carries git metadata, in
        which case buildings keep the base palette.
        """
        metadata = [
            cls_.git_metadata
            for cls_ in data.all_classes()
            if cls_.git_metadata is not None
        ]
        if not metadata:
            return None
        return cls(NormalizationBounds.from_metadata(metadata, now))

    def color_for(
        self,
        metadata: Optional[GitMetadata],
        use_frequency: bool = True,
        use_age: bool = True,
        color_blind: bool = False,
        now: Optional[datetime] = None,
    ) -> HSLColor:
        return color_for(
            metadata, self.bounds, use_frequency, use_age, color_blind, now
        )

    def shades_of(self, color: HSLColor) -> Shades:
        return shades_of(color)

    def is_recent(
        self,
        metadata: Optional[GitMetadata],
        days: int = 7,
        now: Optional[datetime] = None,
    ) -> bool:
        return is_recent(metadata, days, now)

    def frequency_label(self, commits: int) -> str:
        return frequency_label(commits)

    def format_date(
        self, timestamp: Optional[datetime], now: Optional[datetime] = None
    ) -> str:
        return format_relative_date(timestamp, now)
