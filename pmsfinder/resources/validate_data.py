"""
Data Validation

Audits every JSON data file and prints a report. Exits with status 1 when
any file fails schema validation; count, sum and duplicate findings are
warnings only.

Usage: python -m pmsfinder.resources.validate_data [--data-dir DIR]
"""

import argparse
import logging
import sys
from pathlib import Path

from pmsfinder.data.integrity import format_report, run_audit
from pmsfinder.infrastructure.logging_setup import make_log

logger = logging.getLogger(__name__)


def validate_data(data_dir: Path, junk_percent_sum: float = 110.0, log_callback=None) -> int:
    """
    Run the audit and log the report.

    Returns:
        int: Process exit code (0 ok, 1 schema failure)
    """
    log = make_log(logger, log_callback)
    report = run_audit(data_dir, junk_percent_sum=junk_percent_sum)

    for line in format_report(report):
        if line.lstrip().startswith(("WARN", "[SKIP]")):
            log(line, "warning")
        elif "FAIL" in line:
            log(line, "error")
        else:
            log(line, "info")
    return report.exit_code


def main(argv=None) -> int:
    from pmsfinder.infrastructure import load_settings, setup_logging

    parser = argparse.ArgumentParser(description="Validate the pmsfinder data files.")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory holding the JSON data files")
    args = parser.parse_args(argv)

    setup_logging()
    settings = load_settings()
    return validate_data(args.data_dir or settings.data_dir, settings.junk_percent_sum)


if __name__ == "__main__":
    sys.exit(main())
