"""Rich/JSON output helpers.

The CLI renders ServiceResult for humans (Rich) or machines (--json).
The formatter layer picks the mode; renderers do the drawing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from goalgraph.output.renderers import render_result

if TYPE_CHECKING:
    from goalgraph.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    json_output: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display.

    JSON mode dumps the whole result (warnings and meta included);
    otherwise an op-specific Rich renderer is used.
    """
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    return render_result(result, verbose=settings.verbose)
