import os
import json
from datetime import datetime
from typing import Any, Dict, Iterable, List

from contract_runner.models.test_result import FailureDetail, Summary, TestResult, TestSuiteResult
from contract_runner.utils.logger import get_logger

logger = get_logger(__name__)


def report(results: Iterable[TestResult]) -> Summary:
    """Summarize results; every result that did not pass counts as failed"""
    results = list(results)
    failures = tuple(
        FailureDetail(name=r.case.name, reason=r.reason) for r in results if not r.passed
    )
    passed = len(results) - len(failures)
    return Summary(total=len(results), passed=passed, failed=len(failures), failures=failures)


def format_result_line(result: TestResult) -> str:
    if result.passed:
        return f"PASS  {result.case.name}"
    return f"FAIL  {result.case.name}  [{result.reason}]"


def format_report_lines(results: Iterable[TestResult]) -> List[str]:
    """One 'PASS|FAIL  <name>  [reason]' line per result, in run order"""
    return [format_result_line(r) for r in results]


def format_summary(summary: Summary) -> str:
    return f"{summary.total} cases: {summary.passed} passed, {summary.failed} failed"


class ReportGenerator:
    """Writes JSON test reports from suite results."""

    def __init__(self, output_dir: str = "reports"):
        self.output_dir = output_dir

    def build_report(self, test_suite_result: TestSuiteResult) -> Dict[str, Any]:
        """
        Build the report structure for a suite run

        Args:
            test_suite_result: The test suite result to report on

        Returns:
            Dictionary containing the report data
        """
        summary = report(test_suite_result.test_results)

        results_by_endpoint: Dict[str, List[Dict[str, Any]]] = {}
        for result in test_suite_result.test_results:
            key = f"{result.case.method.value} {result.case.path}"
            results_by_endpoint.setdefault(key, []).append(result.to_dict())

        return {
            "name": test_suite_result.name,
            "timestamp": datetime.now().isoformat(),
            "start_time": test_suite_result.start_time.isoformat(),
            "end_time": test_suite_result.end_time.isoformat() if test_suite_result.end_time else None,
            "summary": {
                **summary.to_dict(),
                "success_count": test_suite_result.success_count,
                "failure_count": test_suite_result.failure_count,
                "error_count": test_suite_result.error_count,
                "skipped_count": test_suite_result.skipped_count,
                "success_rate": test_suite_result.success_rate,
            },
            "results_by_endpoint": results_by_endpoint,
        }

    def generate_report(self, test_suite_result: TestSuiteResult) -> str:
        """
        Generate a JSON report file from suite results

        Returns:
            Path to the written report
        """
        logger.info(f"Generating report for test suite: {test_suite_result.name}")

        report_data = self.build_report(test_suite_result)

        os.makedirs(self.output_dir, exist_ok=True)
        report_path = os.path.join(self.output_dir, f"contract_test_report_{self._get_timestamp()}.json")
        with open(report_path, 'w', encoding='utf-8') as f:
            json.dump(report_data, f, indent=2, ensure_ascii=False, default=str)

        logger.info(f"Report saved to {report_path}")
        return report_path

    def _get_timestamp(self) -> str:
        """Get a timestamp string for file names"""
        return datetime.now().strftime("%Y%m%d_%H%M%S")
