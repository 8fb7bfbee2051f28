"""
Text for the details, statistics and legend panels.

Summaries are plain text so the CLI can print them and the viewer can put
them into its labels.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .colors import GitColorMapper, format_relative_date, frequency_label, is_deprecated
from .config import VisualOptions
from .models import BuildingPlacement, CityData


@dataclass
class ProjectStats:
    """Headline numbers for a snapshot."""

    total_packages: int = 0
    total_classes: int = 0
    total_loc: int = 0
    average_loc: int = 0
    largest_class: Optional[str] = None
    largest_loc: int = 0
    smallest_class: Optional[str] = None
    smallest_loc: int = 0


def project_stats(data: CityData) -> ProjectStats:
    """Compute totals and extremes; the first class wins ties."""
    stats = ProjectStats(total_packages=len(data.packages))

    for cls in data.all_classes():
        stats.total_classes += 1
        stats.total_loc += cls.lines_of_code
        if stats.largest_class is None or cls.lines_of_code > stats.largest_loc:
            stats.largest_class = cls.name
            stats.largest_loc = cls.lines_of_code
        if stats.smallest_class is None or cls.lines_of_code < stats.smallest_loc:
            stats.smallest_class = cls.name
            stats.smallest_loc = cls.lines_of_code

    if stats.total_classes:
        stats.average_loc = round(stats.total_loc / stats.total_classes)
    return stats


def format_stats(stats: ProjectStats) -> str:
    rows = [
        ("Total Packages", f"{stats.total_packages}"),
        ("Total Classes", f"{stats.total_classes}"),
        ("Total Lines of Code", f"{stats.total_loc:,}"),
        ("Average LOC/Class", f"{stats.average_loc}"),
    ]
    if stats.largest_class is not None:
        rows.append(("Largest Class", f"{stats.largest_class} ({stats.largest_loc})"))
        rows.append(
            ("Smallest Class", f"{stats.smallest_class} ({stats.smallest_loc})")
        )
    width = max(len(label) for label, _ in rows)
    return "\n".join(f"{label:<{width}}  {value}" for label, value in rows)


def building_details(
    building: BuildingPlacement,
    mapper: Optional[GitColorMapper] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Describe a building for the details panel.

    Args:
        building: The hovered or selected building.
        mapper: Present when the dataset carries git data.
        now: Reference time for the relative date.
    """
    title = building.class_name
    if is_deprecated(building.class_name):
        title += "  [DEPRECATED]"

    lines: List[str] = [
        title,
        f"Package: {building.package_name}",
        f"Lines of Code: {building.lines_of_code}",
        f"Building Height: {int(building.height)}px",
    ]

    git = building.git_metadata
    if git is not None and mapper is not None:
        lines.append("")
        lines.append("Git Metadata")
        lines.append(f"Commits: {git.commits} ({frequency_label(git.commits)})")
        lines.append(f"Authors: {git.authors}")
        if git.last_modified is not None:
            lines.append(
                f"Last Modified: {format_relative_date(git.last_modified, now)}"
            )
    return "\n".join(lines)


def legend(options: VisualOptions) -> str:
    """Explain the active color encodings."""
    lines = []
    if options.show_git_data and options.show_frequency:
        if options.color_blind:
            lines.append("Hue: purple (rarely changed) to orange (frequently changed)")
        else:
            lines.append("Hue: blue (rarely changed) to red (frequently changed)")
    if options.show_git_data and options.show_age:
        lines.append("Saturation: vivid (recent) to faded (untouched for a year)")
    if options.show_git_data and options.show_recent_glow:
        lines.append("Glow: modified within the last week")
    lines.append("Dashed outline: deprecated or legacy class")
    lines.append("Height: lines of code")
    return "\n".join(lines)
