"""
Debiasing Pipeline Orchestrator

Executes the complete debiasing run:
1. Load the cleaned cohort table
2. Partition it by group
3. Debias each partition
4. Write surviving records, removed keys and iteration history per group
5. Write JSON/Markdown reports

Usage:
    python run_debiasing.py --config config.yml
    python run_debiasing.py --config config.yml --data data/sample_cohort.csv --output reports/
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from shared.constants import DEFAULT_PATHS, OUTPUT_SUFFIXES
from shared.logging import get_logger, add_file_handler, remove_file_handler, PipelineLogger
from shared.schemas import DebiasingConfig

from debiasing_module.src.config_loader import ConfigLoader
from debiasing_module.src.exceptions import ConfigurationError
from debiasing_module.src.partitioning import partition_by_group, debias_partitions
from debiasing_module.src.debiasing_report import DebiasingReportGenerator

logger = get_logger(__name__)


class DebiasingPipelineOrchestrator:
    """
    Orchestrate a complete debiasing run.

    Example:
        >>> orchestrator = DebiasingPipelineOrchestrator('config.yml')
        >>> results = orchestrator.run()
        >>> results['outcomes']['F'].removed_keys
    """

    def __init__(self, config_path: str, output_dir: Optional[str] = None):
        """
        Initialize orchestrator.

        Args:
            config_path: Path to YAML configuration file
            output_dir: Output directory (overrides config)
        """
        self.config_path = Path(config_path)
        self.loader = ConfigLoader(str(self.config_path))
        self.config = self._load_config()
        self.output_dir = Path(
            output_dir or self.loader.get('output.directory', DEFAULT_PATHS['reports'])
        )
        self.results: Dict[str, Any] = {}

        self.log_file = self.loader.get('logging.file')

    def _attach_log_file(self) -> List[Tuple[logging.Logger, logging.Handler]]:
        """Route this run's log records to the configured file."""
        if not self.log_file:
            return []
        # Child loggers propagate to the package logger
        targets = [logging.getLogger("debiasing_module"), logger]
        return [(target, add_file_handler(target, self.log_file)) for target in targets]

    def _load_config(self) -> DebiasingConfig:
        """Load and validate configuration from YAML."""
        self.loader.load()
        errors = self.loader.validate()
        if errors:
            raise ConfigurationError(f"Invalid configuration: {errors}")
        return self.loader.to_config()

    def load_data(self, data_path: Optional[str] = None) -> pd.DataFrame:
        """Load dataset."""
        data_path = data_path or self.loader.get('data.path')
        if not data_path:
            raise ConfigurationError("No data path specified")

        df = pd.read_csv(data_path)
        logger.info(f"Loaded data: {len(df)} records, {len(df.columns)} columns")
        return df

    def run_partitioning(self, df: pd.DataFrame) -> Dict[Any, Any]:
        """Step 1: Split the table into one dataset per group."""
        with PipelineLogger(logger, "partitioning"):
            partitions = partition_by_group(df, self.config, self.config.groups)
            logger.info(f"Partitions: {', '.join(str(g) for g in partitions)}")
            return partitions

    def run_debiasing(self, partitions: Dict[Any, Any]) -> Dict[Any, Any]:
        """Step 2: Debias each partition with its own seed."""
        return debias_partitions(partitions, self.config)

    def save_outputs(self, outcomes: Dict[Any, Any]) -> DebiasingReportGenerator:
        """Step 3: Write per-group tables and the reports."""
        with PipelineLogger(logger, "reporting"):
            self.output_dir.mkdir(parents=True, exist_ok=True)
            reporter = DebiasingReportGenerator()

            for group, outcome in outcomes.items():
                reporter.add_outcome(group, outcome)

                outcome.dataset.to_frame().to_csv(
                    self.output_dir / f"{group}{OUTPUT_SUFFIXES['debiased']}", index=False
                )
                pd.DataFrame(
                    {self.config.key_column: sorted(outcome.removed_keys, key=str)}
                ).to_csv(
                    self.output_dir / f"{group}{OUTPUT_SUFFIXES['removed']}", index=False
                )
                pd.DataFrame(
                    [entry.to_dict() for entry in outcome.history],
                    columns=[
                        'iteration', 'sample_size', 'best_slope',
                        'removed_key', 'attempts', 'reduction_pct',
                    ],
                ).to_csv(
                    self.output_dir / f"{group}{OUTPUT_SUFFIXES['history']}", index=False
                )

            reporter.save_json(str(self.output_dir / 'debiasing_report.json'))
            reporter.save_markdown(str(self.output_dir / 'debiasing_report.md'))
            return reporter

    def run(self, data_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Execute complete pipeline.

        Args:
            data_path: Optional data path (overrides config)

        Returns:
            Dictionary with partitions, outcomes and the report generator
        """
        file_handlers = self._attach_log_file()

        logger.info("=" * 60)
        logger.info("STARTING DEBIASING PIPELINE")
        logger.info("=" * 60)

        try:
            df = self.load_data(data_path)

            partitions = self.run_partitioning(df)
            self.results['partitions'] = partitions

            outcomes = self.run_debiasing(partitions)
            self.results['outcomes'] = outcomes

            reporter = self.save_outputs(outcomes)
            self.results['report'] = reporter

            logger.info("=" * 60)
            logger.info("PIPELINE COMPLETED SUCCESSFULLY")
            logger.info("=" * 60)

            reporter.print_summary()

            return self.results

        except Exception as e:
            logger.error(f"Pipeline failed: {e}")
            raise

        finally:
            for target, handler in file_handlers:
                remove_file_handler(target, handler)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run slope debiasing pipeline")
    parser.add_argument(
        '--config',
        type=str,
        default=DEFAULT_PATHS['config'],
        help='Path to config file'
    )
    parser.add_argument(
        '--data',
        type=str,
        help='Path to data file (overrides config)'
    )
    parser.add_argument(
        '--output',
        type=str,
        help='Output directory (overrides config)'
    )

    args = parser.parse_args()

    orchestrator = DebiasingPipelineOrchestrator(args.config, output_dir=args.output)
    orchestrator.run(data_path=args.data)

    print(f"\nOutputs written to: {orchestrator.output_dir}")


if __name__ == "__main__":
    main()
