import json
import os
from typing import Any, Dict

import yaml

from contract_runner.core.exceptions import ConfigError
from contract_runner.models.test_case import TestCaseCollection
from contract_runner.utils.logger import get_logger

logger = get_logger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


def _read_document(file_path: str) -> Dict[str, Any]:
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            if file_path.lower().endswith(YAML_SUFFIXES):
                return yaml.safe_load(f)
            return json.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read case file {file_path}: {e}") from e
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigError(f"Case file {file_path} is not well-formed: {e}") from e


def load_cases(file_path: str) -> TestCaseCollection:
    """
    Load a case collection from a YAML or JSON file.

    Args:
        file_path: Path to the case file; .yaml/.yml is read as YAML, anything else as JSON

    Returns:
        TestCaseCollection with cases in file order

    Raises:
        ConfigError: if the file is missing, malformed or a case is invalid
    """
    if not os.path.exists(file_path):
        raise ConfigError(f"Case file not found: {file_path}")

    collection = TestCaseCollection.from_dict(_read_document(file_path))
    logger.info(f"Loaded {len(collection.test_cases)} test cases from {file_path}")
    return collection
