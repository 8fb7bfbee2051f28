"""
Debug tracing for the city pipeline.

When a session is created with debug=True it records a PipelineStage for
each step (load, layout, fit, draw_list) and one PaintRecord per painted
box. This is mainly useful to answer "why is this building drawn there,
in this color, in this order?" without stepping through the renderer.

Usage:
    >>> session = CitySession(debug=True)
    >>> session.load(data)
    >>> session.draw_list()
    >>> print(session.trace.summary())
    >>> session.trace.dump_to_file("trace.txt")
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PaintRecord:
    """
    Record of one box in the paint order.

    Attributes:
        order: Position in the draw list (0 is painted first).
        kind: "package" or "building".
        name: Package or class name.
        depth: Depth key the box was sorted by.
        fill: Fill color of the right (base) face.
        dashed: Whether outlines were dashed.
        glow: Whether a glow was drawn.
    """

    order: int
    kind: str
    name: str
    depth: float
    fill: tuple
    dashed: bool = False
    glow: bool = False

    def __str__(self) -> str:
        flags = "".join(
            flag for flag, on in (("D", self.dashed), ("G", self.glow)) if on
        )
        suffix = f" [{flags}]" if flags else ""
        return (
            f"#{self.order} {self.kind} {self.name!r} "
            f"depth={self.depth:.1f} fill={self.fill}{suffix}"
        )


@dataclass
class PipelineStage:
    """
    Snapshot of state at a pipeline stage.

    Attributes:
        name: Stage name (e.g. "layout").
        data: Values captured at this stage.
    """

    name: str
    data: Dict[str, Any]

    def __str__(self) -> str:
        lines = [f"=== Stage: {self.name} ==="]
        for key, value in self.data.items():
            # Truncate long values
            str_val = str(value)
            if len(str_val) > 100:
                str_val = str_val[:100] + "..."
            lines.append(f"  {key}: {str_val}")
        return "\n".join(lines)


@dataclass
class RenderTrace:
    """
    Complete trace of one session's pipeline activity.

    Attributes:
        stages: Pipeline stages in the order they ran.
        paints: Paint records from the latest draw list.
    """

    stages: List[PipelineStage] = field(default_factory=list)
    paints: List[PaintRecord] = field(default_factory=list)

    def add_stage(self, name: str, data: Dict[str, Any]) -> None:
        """Add a pipeline stage snapshot."""
        self.stages.append(PipelineStage(name, dict(data)))

    def record_paints(self, commands) -> None:
        """Replace the paint records with those of a new draw list."""
        self.paints = [
            PaintRecord(
                order=i,
                kind=cmd.kind,
                name=cmd.name,
                depth=cmd.depth,
                fill=cmd.faces[1].fill,
                dashed=cmd.dashed,
                glow=cmd.glow,
            )
            for i, cmd in enumerate(commands)
        ]

    def get_stage(self, name: str) -> Optional[PipelineStage]:
        """Get the most recent stage with the given name."""
        for stage in reversed(self.stages):
            if stage.name == name:
                return stage
        return None

    def get_paints_by_name(self, name: str) -> List[PaintRecord]:
        return [p for p in self.paints if p.name == name]

    def summary(self) -> str:
        """Human-readable overview of stages and paint statistics."""
        lines = [
            "=" * 60,
            "RENDER TRACE SUMMARY",
            "=" * 60,
            "",
            f"Pipeline stages: {len(self.stages)}",
        ]
        for stage in self.stages:
            lines.append(f"  - {stage.name}")

        kinds: Dict[str, int] = {}
        for p in self.paints:
            kinds[p.kind] = kinds.get(p.kind, 0) + 1

        lines.extend(
            [
                "",
                f"Painted boxes: {len(self.paints)}",
                f"Dashed: {sum(1 for p in self.paints if p.dashed)}",
                f"Glowing: {sum(1 for p in self.paints if p.glow)}",
            ]
        )
        for kind, count in sorted(kinds.items()):
            lines.append(f"  {kind}: {count}")
        return "\n".join(lines)

    def dump(self) -> str:
        """Summary plus every stage and paint record."""
        lines = [self.summary(), "", "PIPELINE STAGES:", "-" * 40]
        for stage in self.stages:
            lines.append(str(stage))
            lines.append("")
        lines.append("PAINT ORDER:")
        lines.append("-" * 40)
        lines.extend(str(p) for p in self.paints)
        return "\n".join(lines)

    def dump_to_file(self, filename: str) -> None:
        """Write the complete trace dump to a file."""
        with open(filename, "w", encoding="utf-8") as f:
            f.write(self.dump())
