"""
Debiasing Report Generator - Structured reports from debiasing outcomes.

Generates before/after summary tables, per-iteration audit trails, and
JSON/Markdown reports for documentation.
"""

import json
from typing import Any, Dict, List
from datetime import datetime
from pathlib import Path

import numpy as np
import pandas as pd

from shared.schemas import ResamplingOutcome
from shared.logging import get_logger
from shared.validation import safe_divide
from debiasing_module.src.exceptions import DegenerateInputError
from debiasing_module.src.regression import slope_significance

logger = get_logger(__name__)


def _describe(dataset, suffix: str) -> Dict[str, float]:
    if dataset is None:
        return {
            f"n_{suffix}": np.nan,
            f"x_mean_{suffix}": np.nan,
            f"x_std_{suffix}": np.nan,
            f"y_mean_{suffix}": np.nan,
            f"y_std_{suffix}": np.nan,
        }
    return {
        f"n_{suffix}": len(dataset),
        f"x_mean_{suffix}": float(np.mean(dataset.x)),
        f"x_std_{suffix}": float(np.std(dataset.x, ddof=1)),
        f"y_mean_{suffix}": float(np.mean(dataset.y)),
        f"y_std_{suffix}": float(np.std(dataset.y, ddof=1)),
    }


def _p_value(dataset) -> float:
    if dataset is None:
        return np.nan
    try:
        return slope_significance(dataset.x, dataset.y)["p_value"]
    except DegenerateInputError:
        return np.nan


def summarize_outcome(outcome: ResamplingOutcome) -> Dict[str, Any]:
    """
    Before/after summary statistics for one debiased partition.

    Returns:
        Dictionary with sizes, slopes, X/Y means and standard deviations,
        and the slope p-value before and after debiasing
    """
    row = {
        "group": outcome.group,
        "converged": outcome.converged,
        "iterations": outcome.n_iterations,
        "total_attempts": outcome.total_attempts,
        "n_removed": outcome.n_removed,
        "removed_pct": 100.0 * outcome.removed_fraction,
        "slope_before": outcome.initial_slope,
        "slope_after": outcome.final_slope,
        "tolerance": outcome.tolerance,
        "p_value_before": _p_value(outcome.original_dataset),
        "p_value_after": _p_value(outcome.dataset),
    }
    row.update(_describe(outcome.original_dataset, "before"))
    row.update(_describe(outcome.dataset, "after"))
    return row


class DebiasingReportGenerator:
    """
    Generate structured debiasing reports.

    Example:
        >>> reporter = DebiasingReportGenerator()
        >>> reporter.add_outcome('F', outcome_female)
        >>> reporter.add_outcome('M', outcome_male)
        >>> reporter.summary_table()
        >>> reporter.save_json('reports/debiasing_report.json')
        >>> reporter.save_markdown('reports/debiasing_report.md')
    """

    def __init__(self):
        self.outcomes: Dict[Any, ResamplingOutcome] = {}
        self.metadata = {
            'generated_at': datetime.now().isoformat(),
            'version': '0.1.0'
        }

    def add_outcome(self, group: Any, outcome: ResamplingOutcome) -> None:
        """Add a debiasing outcome to the report."""
        self.outcomes[group] = outcome
        logger.info(
            f"Added outcome: {group} (removed={outcome.n_removed}/{outcome.n_original})"
        )

    def summary_table(self) -> pd.DataFrame:
        """One row per group with before/after statistics."""
        rows = [summarize_outcome(outcome) for outcome in self.outcomes.values()]
        if not rows:
            return pd.DataFrame()
        return pd.DataFrame(rows).set_index("group")

    def history_frame(self) -> pd.DataFrame:
        """Per-iteration audit trail for every group."""
        records: List[Dict[str, Any]] = []
        for group, outcome in self.outcomes.items():
            for entry in outcome.history:
                records.append({"group": group, **entry.to_dict()})

        columns = [
            "group", "iteration", "sample_size", "best_slope",
            "removed_key", "attempts", "reduction_pct",
        ]
        return pd.DataFrame(records, columns=columns)

    def get_summary(self) -> dict:
        """Get summary statistics."""
        total_original = sum(o.n_original for o in self.outcomes.values())
        total_removed = sum(o.n_removed for o in self.outcomes.values())

        return {
            'total_groups': len(self.outcomes),
            'converged_groups': sum(1 for o in self.outcomes.values() if o.converged),
            'total_records': total_original,
            'total_removed': total_removed,
            'removed_pct': 100.0 * safe_divide(total_removed, total_original),
        }

    def to_dict(self) -> dict:
        """Convert report to dictionary."""
        return {
            'metadata': self.metadata,
            'summary': self.get_summary(),
            'results': {
                str(group): {**outcome.to_dict(), 'statistics': summarize_outcome(outcome)}
                for group, outcome in self.outcomes.items()
            }
        }

    def save_json(self, filepath: str) -> None:
        """Save report as JSON."""
        Path(filepath).parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

        logger.info(f"Saved JSON report to {filepath}")

    def save_markdown(self, filepath: str) -> None:
        """Save report as Markdown."""
        Path(filepath).parent.mkdir(parents=True, exist_ok=True)

        md = self._generate_markdown()

        with open(filepath, 'w') as f:
            f.write(md)

        logger.info(f"Saved Markdown report to {filepath}")

    def _generate_markdown(self) -> str:
        """Generate Markdown report content."""
        lines = [
            "# Debiasing Report",
            f"\n**Generated:** {self.metadata['generated_at']}",
            "\n## Summary\n",
        ]

        summary = self.get_summary()
        lines.append(f"- **Groups:** {summary['total_groups']}")
        lines.append(f"- **Converged:** {summary['converged_groups']}")
        lines.append(f"- **Records:** {summary['total_records']}")
        lines.append(
            f"- **Removed:** {summary['total_removed']} ({summary['removed_pct']:.2f}%)"
        )

        lines.append("\n## Groups\n")
        lines.append("| Group | n before | n after | Slope before | Slope after | p after |")
        lines.append("|---|---|---|---|---|---|")
        for group, outcome in self.outcomes.items():
            stats = summarize_outcome(outcome)
            lines.append(
                f"| {group} | {stats['n_before']} | {stats['n_after']} "
                f"| {stats['slope_before']:.6g} | {stats['slope_after']:.6g} "
                f"| {stats['p_value_after']:.4g} |"
            )

        for group, outcome in self.outcomes.items():
            lines.append(f"\n### {group}\n")
            lines.append(f"**Tolerance:** {outcome.tolerance:.3g}")
            lines.append(f"**Iterations:** {outcome.n_iterations}")
            lines.append(f"**Candidate draws:** {outcome.total_attempts}")
            if outcome.removed_keys:
                removed = ", ".join(str(k) for k in sorted(outcome.removed_keys, key=str))
                lines.append(f"**Removed keys:** {removed}")

        return '\n'.join(lines)

    def print_summary(self) -> None:
        """Print summary to console."""
        summary = self.get_summary()

        print("\n" + "=" * 60)
        print("DEBIASING SUMMARY")
        print("=" * 60)
        print(f"Groups: {summary['total_groups']}")
        print(f"Converged: {summary['converged_groups']}")
        print(f"Records: {summary['total_records']}")
        print(f"Removed: {summary['total_removed']} ({summary['removed_pct']:.2f}%)")
        print("=" * 60)

        for group, outcome in self.outcomes.items():
            print(
                f"{group}: n {outcome.n_original} -> {len(outcome.dataset)}, "
                f"slope {outcome.initial_slope:.6g} -> {outcome.final_slope:.6g}"
            )
