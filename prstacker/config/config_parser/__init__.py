"""Config parser logic."""

import re
from typing import Dict, Union, Any, Optional, TYPE_CHECKING
import logging
import yaml
from pydantic import ValidationError

from ...errors import configuration_error
from .. import Config

if TYPE_CHECKING:
    from ...github import GitHubRepoProtocol

# Get module logger
logger = logging.getLogger(__name__)

CONFIG_PATH = ".github/pr-stacker.yml"

ConfigValue = Union[str, bool, int, float]
SectionConfig = Dict[str, Any]  # Use Any since yaml can return various types
RawConfig = Dict[str, SectionConfig]

_CAMEL_RE = re.compile(r'(?<=[a-z0-9])([A-Z]+)')

def _default_raw_config() -> RawConfig:
    return {
        'repo': {
            'enabled': True,
            'restrict_commands_to_originator': True,
            'single_comment': False,
            'skip_ready_check': False,
            'stack_tree_comment': {
                'enable': True,
                'skip_single_pr': True,
            },
        },
        'tool': {
            'concurrency': 0,
            'consistency_poll_interval': 1.0,
            'consistency_timeout': 30.0,
        }
    }

def snake_case(key: str) -> str:
    """mainBranch -> main_branch, skipSinglePR -> skip_single_pr."""
    return _CAMEL_RE.sub(lambda m: '_' + m.group(1), key).lower()

def _normalize(values: Dict[str, Any]) -> Dict[str, Any]:
    """Convert the camelCase keys of the repo file to field names, recursively."""
    result: Dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, dict):
            value = _normalize(value)
        result[snake_case(str(key))] = value
    return result

def _merge(target: Dict[str, Any], source: Dict[str, Any]) -> None:
    """Recursively merge source into target."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value

def parse_config(content: Optional[str] = None,
                 overrides: Optional[RawConfig] = None) -> Config:
    """Parse config from the repository config file content.

    Precedence is defaults, then the repository file, then overrides (the
    command line).
    """
    config = _default_raw_config()

    if content:
        try:
            repo_config = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise configuration_error(f"Invalid YAML in {CONFIG_PATH}: {e}", cause=e)
        logger.debug(f"Config from {CONFIG_PATH}: {repo_config}")
        if repo_config is not None and not isinstance(repo_config, dict):
            raise configuration_error(f"{CONFIG_PATH} must contain a mapping of options")
        if repo_config:
            _merge(config['repo'], _normalize(repo_config))

    if overrides:
        for section, values in overrides.items():
            if isinstance(values, dict):
                _merge(config.setdefault(section, {}), _normalize(values))

    try:
        return Config(config)
    except ValidationError as e:
        raise configuration_error(f"Invalid configuration in {CONFIG_PATH}: {e}", cause=e)

def load_repo_config(repo: 'GitHubRepoProtocol', overrides: Optional[RawConfig] = None) -> Config:
    """Load the repository config file through the host API."""
    content = repo.get_file_content(CONFIG_PATH)
    if content is None:
        logger.info(f"No {CONFIG_PATH} found, using defaults")
    else:
        logger.info(f"Found {CONFIG_PATH}, loading...")
    return parse_config(content, overrides)
