"""
Report generation hand-off.

The classification/accuracy algorithm is pluggable: a report builder is any
callable taking the ordered list of evaluated position dicts and returning a
JSON-serialisable report dict. Builders can be named on the command line as
"package.module:function".
"""

import pkgutil
from typing import Callable

from review.constants import SOURCE_CLOUD, SOURCE_LOCAL
from review.errors import ReportError

ReportBuilder = Callable[[list[dict]], dict]

DEFAULT_BUILDER = "review.report:evaluation_summary"


def evaluation_summary(positions: list[dict]) -> dict:
    """
    Default builder: passes the evaluations through without classifying moves.

    Accuracies are left as None; plug in a classifying builder to fill them.
    """
    if not positions:
        raise ValueError("No evaluated positions")

    sources = {SOURCE_CLOUD: 0, SOURCE_LOCAL: 0}
    for position in positions:
        sources[position["worker"]] += 1

    return {
        "accuracies": None,
        "sources": sources,
        "positions": positions,
    }


def resolve_builder(name: str) -> ReportBuilder:
    """Import a report builder from a "module:callable" name."""
    try:
        builder = pkgutil.resolve_name(name)
    except (ImportError, AttributeError, ValueError) as e:
        raise ValueError(f"Cannot load report builder '{name}': {e}") from e
    if not callable(builder):
        raise ValueError(f"Report builder '{name}' is not callable")
    return builder


def generate_report(positions: list[dict], builder: ReportBuilder = evaluation_summary) -> dict:
    """
    Run the report builder once over the evaluated positions.

    Raises:
        ReportError: if the builder fails for any reason (never retried)
    """
    try:
        report = builder(positions)
    except Exception as e:
        raise ReportError() from e
    if not isinstance(report, dict):
        raise ReportError()
    return report
