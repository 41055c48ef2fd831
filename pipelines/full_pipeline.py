#!/usr/bin/env python3
"""
Full reconciliation pipeline for the Staff Roster Dashboard

This pipeline orchestrates the complete data flow:
1. Load settings
2. Locate the roster, service-history and summary extracts
3. Reconcile people and schools, build demographics and staffing
4. Export dashboard data (JSON + CSV + lineage)

Usage:
    python full_pipeline.py --roster <csv> --services <csv> --summary <csv|dir> [--rebuild]

Example:
    python full_pipeline.py --roster data/raw/Basic.csv --services data/raw/Services.csv \
        --summary data/raw/summaries --output-dir outputs/dashboard
    python full_pipeline.py --roster data/raw/Basic.csv --services data/raw/Services.csv \
        --summary data/raw/Dashboard_Summary_202509.csv --rebuild
"""

import argparse
import logging
from pathlib import Path
import sys
from datetime import date, datetime
from typing import Optional

import yaml

# Add utilities and package source to path
sys.path.insert(0, str(Path(__file__).parent.parent / "infrastructure" / "utilities"))
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from common import (
    create_data_lineage_file,
    find_latest_extract,
    format_number,
    get_project_root,
    safe_divide,
    setup_logging,
)
from staff_dashboard.config import DashboardSettings, load_settings
from staff_dashboard.exceptions import DashboardError
from staff_dashboard.exporters.dashboard_export import (
    build_payload,
    write_json,
    write_persons_csv,
    write_staffing_csv,
)
from staff_dashboard.reconciliation import ReconciliationResult, run_reconciliation

logger = logging.getLogger(__name__)


class PipelineRunner:
    """
    Orchestrate one reconciliation pass and its exports
    """

    def __init__(self, roster: Path, services: Path, summary: Path,
                 output_dir: Optional[Path] = None, cache: Optional[Path] = None,
                 config: Optional[Path] = None, force_rebuild: bool = False,
                 today: Optional[date] = None):
        """
        Initialize pipeline

        Args:
            roster: Personnel roster extract
            services: Service-history extract
            summary: Summary extract, or a directory holding monthly summaries
            output_dir: Where exports are written
            cache: Service-start date cache (defaults to output_dir/doj_cache.json)
            config: YAML settings file (defaults to config/dashboard.yaml if present)
            force_rebuild: Rebuild the service-start cache
            today: Reference date for ages and celebrations
        """
        self.root = get_project_root()
        self.roster = Path(roster)
        self.services = Path(services)
        self.summary = Path(summary)
        self.output_dir = Path(output_dir) if output_dir else self.root / "outputs" / "dashboard"
        self.cache = Path(cache) if cache else self.output_dir / "doj_cache.json"
        self.config = Path(config) if config else None
        self.force_rebuild = force_rebuild
        self.today = today or date.today()

        self.settings = DashboardSettings()
        self.result: Optional[ReconciliationResult] = None
        self.outputs = []

        self.steps_completed = []
        self.steps_failed = []

    def step_load_settings(self) -> bool:
        """
        Step 1: Load settings

        Returns:
            True if successful
        """
        logger.info("\n" + "="*60)
        logger.info("STEP 1: LOAD SETTINGS")
        logger.info("="*60)

        config = self.config
        if config is None:
            default = self.root / "config" / "dashboard.yaml"
            config = default if default.exists() else None

        if config is None:
            logger.info("No config file, using built-in defaults")
            return True

        try:
            self.settings = load_settings(config)
        except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Invalid settings: {e}")
            return False

        logger.info(f"Settings loaded from {config}")
        return True

    def step_locate_extracts(self) -> bool:
        """
        Step 2: Locate extracts

        Returns:
            True if successful
        """
        logger.info("\n" + "="*60)
        logger.info("STEP 2: LOCATE EXTRACTS")
        logger.info("="*60)

        if self.summary.is_dir():
            latest = find_latest_extract(self.summary, "*Summary*.csv")
            if latest is None:
                logger.error(f"No summary extracts found in {self.summary}")
                return False
            self.summary = latest

        missing = [p for p in (self.roster, self.services, self.summary) if not p.exists()]
        for path in missing:
            logger.error(f"Input file not found: {path}")
        if missing:
            return False

        logger.info(f"  Roster:   {self.roster}")
        logger.info(f"  Services: {self.services}")
        logger.info(f"  Summary:  {self.summary}")
        return True

    def step_reconcile(self) -> bool:
        """
        Step 3: Reconcile extracts

        Returns:
            True if successful
        """
        logger.info("\n" + "="*60)
        logger.info("STEP 3: RECONCILE")
        logger.info("="*60)

        try:
            self.result = run_reconciliation(
                self.roster, self.services, self.summary, self.cache,
                force_rebuild=self.force_rebuild,
                settings=self.settings,
                today=self.today,
            )
        except DashboardError as e:
            logger.error(f"Reconciliation failed: {e}")
            return False

        return True

    def step_export(self) -> bool:
        """
        Step 4: Export dashboard data

        Returns:
            True if successful
        """
        logger.info("\n" + "="*60)
        logger.info("STEP 4: EXPORT DASHBOARD DATA")
        logger.info("="*60)

        stamp = self.today.strftime('%Y%m')
        payload = build_payload(self.result, self.today)

        json_path = write_json(payload, self.output_dir / f"dashboard_{stamp}.json")
        staffing_path = write_staffing_csv(self.result, self.output_dir / f"staffing_{stamp}.csv")
        persons_path = write_persons_csv(self.result, self.output_dir / f"employees_{stamp}.csv")
        self.outputs = [json_path, staffing_path, persons_path]

        create_data_lineage_file(
            json_path,
            [self.roster, self.services, self.summary],
            [
                "normalize fields and resolve employee/school ids",
                "load or rebuild service-start cache",
                "join roster with service history",
                "aggregate demographics by zone and designation",
                "derive teacher staffing per school",
                "rank zones, designations and categories",
            ],
            {
                'cache_file': str(self.cache),
                'force_rebuild': self.force_rebuild,
                'diagnostics': self.result.diagnostics.to_dict(),
            },
        )
        return True

    def run_step(self, name: str, step) -> bool:
        if step():
            self.steps_completed.append(name)
            return True
        self.steps_failed.append(name)
        return False

    def print_summary(self):
        """Log headline counts and step status"""
        logger.info("\n" + "="*60)
        logger.info("PIPELINE SUMMARY")
        logger.info("="*60)

        if self.result is not None:
            headline = self.result.headline
            staffed = [s for s in self.result.staffing if s.total_staff]
            avg_staff = safe_divide(sum(s.total_staff for s in staffed), len(staffed))
            vacancies = sum(-s.surplus_vacancy for s in self.result.staffing if s.surplus_vacancy < 0)

            logger.info(f"Employees:     {format_number(headline['total_persons'])}")
            logger.info(f"Schools:       {format_number(headline['total_units'])}")
            logger.info(f"Zones:         {format_number(headline['total_zones'])}")
            logger.info(f"Designations:  {format_number(headline['total_roles'])}")
            logger.info(f"Staff/school:  {format_number(avg_staff, 1)}")
            logger.info(f"Vacancies:     {format_number(vacancies)}")

        for output in self.outputs:
            logger.info(f"  Output: {output}")

        logger.info(f"Steps completed: {', '.join(self.steps_completed) or 'none'}")
        if self.steps_failed:
            logger.error(f"Steps failed: {', '.join(self.steps_failed)}")

    def run(self) -> bool:
        """
        Run the complete pipeline

        Returns:
            True if all steps succeeded
        """
        start_time = datetime.now()
        logger.info(f"Pipeline started at {start_time:%Y-%m-%d %H:%M:%S}")

        steps = [
            ('load_settings', self.step_load_settings),
            ('locate_extracts', self.step_locate_extracts),
            ('reconcile', self.step_reconcile),
            ('export', self.step_export),
        ]
        success = all(self.run_step(name, step) for name, step in steps)

        self.print_summary()
        elapsed = datetime.now() - start_time
        logger.info(f"Pipeline {'completed' if success else 'FAILED'} in {elapsed.total_seconds():.1f}s")
        return success


def main():
    parser = argparse.ArgumentParser(
        description="Reconcile staff extracts and export dashboard data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--roster', type=Path, required=True,
                        help='Personnel roster CSV (Basic)')
    parser.add_argument('--services', type=Path, required=True,
                        help='Service-history CSV (Services)')
    parser.add_argument('--summary', type=Path, required=True,
                        help='School summary CSV, or a directory of monthly summaries')
    parser.add_argument('--output-dir', type=Path, help='Export directory')
    parser.add_argument('--cache', type=Path, help='Service-start date cache path')
    parser.add_argument('--config', type=Path, help='YAML settings file')
    parser.add_argument('--rebuild', action='store_true',
                        help='Force rebuild of the service-start cache')
    parser.add_argument('--log-level', default='INFO', help='Logging level')
    parser.add_argument('--log-file', type=Path, help='Optional log file')

    args = parser.parse_args()
    setup_logging(args.log_level, args.log_file)

    runner = PipelineRunner(
        roster=args.roster,
        services=args.services,
        summary=args.summary,
        output_dir=args.output_dir,
        cache=args.cache,
        config=args.config,
        force_rebuild=args.rebuild,
    )
    sys.exit(0 if runner.run() else 1)


if __name__ == "__main__":
    main()
