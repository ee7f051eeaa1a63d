"""Compile pipeline data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass

from . import constants


@dataclass(frozen=True)
class CodeGenConfig:
    """Groups code generation options."""

    entry_label: str = constants.ENTRY_LABEL
    annotate: bool = False


@dataclass
class CompileStats:
    """Timing and size statistics for each pipeline stage."""

    source_bytes: int = 0
    source_lines: int = 0

    # Stage timings (seconds)
    lex_time: float = 0.0
    parse_time: float = 0.0
    codegen_time: float = 0.0
    total_time: float = 0.0

    # Output sizes
    token_count: int = 0
    top_level_nodes: int = 0
    function_count: int = 0
    global_count: int = 0
    asm_lines: int = 0

    def report(self) -> str:
        lines = [
            "═══ Compile Statistics ═══",
            f"  Source: {self.source_lines} lines, {self.source_bytes} bytes",
            "",
            f"  {'Stage':<20} {'Time':>10}  {'Output':>30}",
            f"  {'─' * 20} {'─' * 10}  {'─' * 30}",
        ]

        stages = [
            ("Lex", self.lex_time, f"{self.token_count} tokens"),
            ("Parse", self.parse_time, f"{self.top_level_nodes} top-level nodes"),
            ("Generate", self.codegen_time, f"{self.asm_lines} assembly lines"),
        ]
        for name, t, output in stages:
            time_str = f"{t * 1000:>8.1f}ms"
            lines.append(f"  {name:<20} {time_str:>10}  {output:>30}")

        lines.append(f"  {'─' * 20} {'─' * 10}  {'─' * 30}")
        lines.append(f"  {'Total':<20} {self.total_time * 1000:>8.1f}ms")
        lines.append("")
        lines.append(
            f"  Symbols: {self.function_count} functions,"
            f" {self.global_count} globals"
        )
        return "\n".join(lines)
