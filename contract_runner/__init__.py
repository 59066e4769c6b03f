from contract_runner.core.config import RunnerConfig, configure
from contract_runner.core.exceptions import (AssertionFailure, ConfigError, ContractRunnerError, ParseError,
                                             PathNotFoundError, TransportError)
from contract_runner.core.report_generator import format_report_lines, report
from contract_runner.core.test_runner import TestRunner
from contract_runner.models.test_case import BodyAssertion, HttpMethod, Matcher, TestCase, TestCaseCollection
from contract_runner.models.test_result import AssertionOutcome, Summary, TestResult, TestStatus

__version__ = "0.1.0"

__all__ = [
    "AssertionFailure",
    "AssertionOutcome",
    "BodyAssertion",
    "ConfigError",
    "ContractRunnerError",
    "HttpMethod",
    "Matcher",
    "ParseError",
    "PathNotFoundError",
    "RunnerConfig",
    "Summary",
    "TestCase",
    "TestCaseCollection",
    "TestResult",
    "TestRunner",
    "TestStatus",
    "TransportError",
    "configure",
    "format_report_lines",
    "report",
]
