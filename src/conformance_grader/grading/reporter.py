import os
from typing import List, Dict, Any

import pandas as pd

from ..models import GradingReport
from ..utils.constants import CSV_ENCODING, RESULTS_CSV
from ..utils.log import get_logger

logger = get_logger(__name__)

COLUMNS = ['check', 'status', 'kind', 'message', 'expected', 'observed']


def report_rows(report: GradingReport) -> List[Dict[str, Any]]:
    """Flatten a report: one row per failure, one row per passing check."""
    rows = []
    for result in report.results:
        if result.passed:
            rows.append({'check': result.name, 'status': 'PASS', 'kind': '',
                         'message': '', 'expected': '', 'observed': ''})
            continue
        for failure in result.failures:
            rows.append({
                'check': result.name,
                'status': 'FAIL',
                'kind': failure.kind.value,
                'message': failure.message,
                'expected': '' if failure.expected is None else str(failure.expected),
                'observed': '' if failure.observed is None else str(failure.observed),
            })
    if report.aborted:
        rows.append({'check': 'connection', 'status': 'ABORTED', 'kind': 'ConnectionError',
                     'message': report.error or '', 'expected': '', 'observed': ''})
    return rows


def save_results_csv(report: GradingReport, out_dir: str, filename: str = RESULTS_CSV) -> str:
    """Save grading results to CSV.

    Returns:
        str: Path of the written file
    """
    os.makedirs(out_dir, exist_ok=True)
    out_path = os.path.join(out_dir, filename)
    df = pd.DataFrame(report_rows(report), columns=COLUMNS)
    df.to_csv(out_path, index=False, encoding=CSV_ENCODING)
    logger.info(f"Grading results saved to: {out_path}")
    return out_path


def format_summary(report: GradingReport) -> str:
    """Human-readable summary: one line per check, then totals."""
    lines = []
    for result in report.results:
        if result.passed:
            lines.append(f"✅ {result.name}")
        else:
            lines.append(f"❌ {result.name}")
            lines.extend(f"     - {failure}" for failure in result.failures)
    if report.aborted:
        lines.append(f"🛑 Run aborted: {report.error}")
    lines.append(f"📊 {report.passed_count}/{len(report.results)} checks passed")
    return "\n".join(lines)
