from pathlib import Path

import yaml
from pydantic import ValidationError

from identity_search.rules.models import Rules


def _describe(error: ValidationError) -> str:
    lines = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "<root>"
        lines.append(f"  {location}: {item['msg']}")
    return "\n".join(lines)


def load_rules(path: Path | str) -> Rules:
    """
    Load and validate the rules file.

    Raises FileNotFoundError if the file is missing and ValueError if it is
    not a YAML mapping or does not match the schema. Omitted sections take
    their defaults; `project` is required.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Rules file {path} must contain a YAML mapping at the top level")

    try:
        return Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed for {path}:\n{_describe(e)}") from e
