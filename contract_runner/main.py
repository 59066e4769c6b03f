#!/usr/bin/env python3
import argparse
import logging
import os
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

from contract_runner.core.case_loader import load_cases
from contract_runner.core.config import DEFAULT_SETTINGS_PATH, config_from_settings, load_settings
from contract_runner.core.exceptions import ConfigError
from contract_runner.core.report_generator import (ReportGenerator, format_report_lines, format_summary,
                                                   report)
from contract_runner.core.test_runner import TestRunner
from contract_runner.models.test_result import TestSuiteResult
from contract_runner.utils.env_file_generator import (extract_env_vars, generate_environment_file,
                                                      load_environment_file, parse_env_assignments)
from contract_runner.utils.logger import get_logger, set_level

logger = get_logger(__name__)

PACKAGE_LOGGER_PREFIX = "contract_runner"


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description="Contract Runner - declarative HTTP contract tests")

    parser.add_argument("command", choices=["test", "env"], help="Command to execute")

    # Case file for the test command
    parser.add_argument("-f", "--file", help="Path to the case file (YAML or JSON)")

    parser.add_argument("-o", "--output", help="Output directory for reports, or output path for env")

    parser.add_argument("-u", "--url", help="Base URL of the service under test")

    parser.add_argument("-c", "--config", default=DEFAULT_SETTINGS_PATH,
                        help="Path to the settings file")

    parser.add_argument("-e", "--env-file", dest="env_file",
                        help="Environment file whose enabled values become template variables")

    parser.add_argument("--env-var", action="append", dest="vars",
                        help="Variable in format key=value; repeatable")

    parser.add_argument("-n", "--name", default="Contract Test Environment",
                        help="Name of the environment (for env command)")

    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")

    parser.add_argument("--deadline", type=float, help="Run-level time budget in seconds")

    parser.add_argument("--parallel", type=int, dest="parallel_workers",
                        help="Worker count for cases marked idempotent")

    parser.add_argument("--stop-on-failure", action="store_true", default=None,
                        dest="stop_on_first_failure",
                        help="Skip the remaining cases after the first failure")

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")

    return parser.parse_args(argv)


def _enable_debug_logging() -> None:
    for name, candidate in logging.Logger.manager.loggerDict.items():
        if name.startswith(PACKAGE_LOGGER_PREFIX) and isinstance(candidate, logging.Logger):
            set_level(candidate, logging.DEBUG)


def _collect_variables(args: argparse.Namespace) -> Dict[str, Any]:
    variables: Dict[str, Any] = {}
    if args.env_file:
        variables.update(extract_env_vars(load_environment_file(args.env_file)))
    variables.update(parse_env_assignments(args.vars))
    return variables


def run_test_command(args: argparse.Namespace, settings: Dict[str, Any]) -> int:
    """Run the test command to execute a case file"""
    if not args.file:
        logger.error("No input file specified. Use -f/--file to specify a case file.")
        return 1

    logger.info(f"Running tests from {args.file}")

    try:
        collection = load_cases(args.file)

        variables = dict(collection.variables)
        variables.update(_collect_variables(args))

        config = config_from_settings(
            settings,
            base_url=args.url,
            default_timeout=args.timeout,
            variables=variables,
            stop_on_first_failure=args.stop_on_first_failure,
            parallel_workers=args.parallel_workers,
            deadline=args.deadline,
        )
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    suite_result = TestSuiteResult(name=collection.name, start_time=datetime.now())
    with TestRunner(config) as runner:
        suite_result.test_results = runner.run_all(collection.test_cases)
    suite_result.end_time = datetime.now()

    for line in format_report_lines(suite_result.test_results):
        print(line)
    summary = report(suite_result.test_results)
    print(format_summary(summary))

    output_dir = args.output or (settings.get('report') or {}).get('output_dir')
    if output_dir:
        ReportGenerator(output_dir=output_dir).generate_report(suite_result)

    logger.info(f"Testing completed: {suite_result.success_count} passed, "
                f"{suite_result.failure_count} failed, {suite_result.error_count} errors")

    return 0 if summary.all_passed else 1


def run_env_command(args: argparse.Namespace, settings: Dict[str, Any]) -> int:
    """Generate an environment file holding template variables"""
    output_path = args.output or os.path.join("reports", "environment.json")

    env_vars: Dict[str, Any] = {}
    env_vars.update(settings.get('api_environment') or {})
    if args.url:
        env_vars['base_url'] = args.url
    try:
        env_vars.update(parse_env_assignments(args.vars))
    except ConfigError as e:
        logger.error(str(e))
        return 1

    generate_environment_file(output_path=output_path, env_vars=env_vars, env_name=args.name)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = parse_arguments(argv)

    if args.verbose:
        _enable_debug_logging()

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        logger.error(str(e))
        return 1

    if args.command == "test":
        return run_test_command(args, settings)
    return run_env_command(args, settings)


if __name__ == "__main__":
    sys.exit(main())
