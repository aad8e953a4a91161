"""
Partitioning - Split a cleaned cohort table into one dataset per group and
debias each partition independently.
"""

from typing import Any, Dict, List, Optional

import pandas as pd

from shared.constants import UNGROUPED_LABEL
from shared.logging import get_logger, log_metric, PipelineLogger
from shared.schemas import DebiasingConfig, ResamplingOutcome
from shared.validation import ValidationError, validate_dataframe
from debiasing_module.src.dataset import MeasurementDataset
from debiasing_module.src.exceptions import DatasetValidationError, EmptyGroupError
from debiasing_module.src.resamplers import SlopeDebiaser

logger = get_logger(__name__)


def _sorted_labels(labels) -> List[Any]:
    return sorted(labels, key=lambda label: (str(type(label)), str(label)))


def partition_by_group(
    df: pd.DataFrame,
    config: DebiasingConfig,
    groups: Optional[List[Any]] = None,
) -> Dict[Any, MeasurementDataset]:
    """
    Split a table into one MeasurementDataset per group label.

    Rows missing X or Y are dropped (and counted) before partitioning.
    Without a group column the whole table is one partition labelled 'all'.

    Args:
        df: Cleaned cohort table
        config: Column names (key, x, y, group)
        groups: Group labels to keep (None: every label present)

    Returns:
        Dictionary of group label -> MeasurementDataset, in sorted label order

    Raises:
        EmptyGroupError: A requested group has no usable rows
        DatasetValidationError: Required columns are missing
    """
    required = [config.key_column, config.x_column, config.y_column]
    if config.group_column:
        required.append(config.group_column)

    try:
        validate_dataframe(df, required_columns=required)
    except ValidationError as e:
        raise DatasetValidationError(str(e)) from e

    usable = df.dropna(subset=[config.x_column, config.y_column])
    n_dropped = len(df) - len(usable)
    if n_dropped:
        logger.warning(
            f"Dropped {n_dropped} rows with missing "
            f"'{config.x_column}' or '{config.y_column}'"
        )

    if not config.group_column:
        if groups:
            logger.warning(f"Ignoring groups {groups}: no group column configured")
        dataset = MeasurementDataset.from_frame(
            usable,
            key_column=config.key_column,
            x_column=config.x_column,
            y_column=config.y_column,
            group=UNGROUPED_LABEL,
        )
        return {UNGROUPED_LABEL: dataset}

    present = usable[config.group_column].dropna().unique().tolist()
    requested = list(groups) if groups else _sorted_labels(present)
    if not requested:
        raise EmptyGroupError("Table has no usable records in any group")

    partitions = {}
    for label in requested:
        rows = usable[usable[config.group_column] == label]
        if len(rows) == 0:
            raise EmptyGroupError(
                f"Group '{label}' has no usable records in column "
                f"'{config.group_column}'",
                group=label,
            )

        partitions[label] = MeasurementDataset.from_frame(
            rows,
            key_column=config.key_column,
            x_column=config.x_column,
            y_column=config.y_column,
            group_column=config.group_column,
            group=label,
        )
        log_metric(logger, "partition_size", len(rows), {"group": label})

    return partitions


def debias_partitions(
    partitions: Dict[Any, MeasurementDataset],
    config: DebiasingConfig,
) -> Dict[Any, ResamplingOutcome]:
    """
    Debias already-partitioned datasets.

    Each group gets its own seed (random_state + index in partition order),
    so a group's outcome does not depend on the other groups.

    Args:
        partitions: Group label -> MeasurementDataset
        config: Debiaser parameters

    Returns:
        Dictionary of group label -> ResamplingOutcome

    Raises:
        DegenerateInputError, NonConvergenceError: Propagated from the debiaser
    """
    outcomes = {}
    for index, (label, dataset) in enumerate(partitions.items()):
        params = config.debiaser_params()
        if config.random_state is not None:
            params["random_state"] = (config.random_state + index) % 2**32

        with PipelineLogger(logger, f"debiasing[{label}]"):
            debiaser = SlopeDebiaser(**params)
            outcomes[label] = debiaser.fit_resample(dataset)

    return outcomes


def debias_groups(
    df: pd.DataFrame,
    config: DebiasingConfig,
    groups: Optional[List[Any]] = None,
) -> Dict[Any, ResamplingOutcome]:
    """
    Partition a table by group and debias each partition.

    Args:
        df: Cleaned cohort table
        config: Column names and debiaser parameters
        groups: Group labels to debias (None: config.groups, then all)

    Returns:
        Dictionary of group label -> ResamplingOutcome

    Raises:
        EmptyGroupError, DegenerateInputError, NonConvergenceError:
            Propagated from partitioning or the debiaser
    """
    partitions = partition_by_group(df, config, groups if groups is not None else config.groups)
    return debias_partitions(partitions, config)
