"""Config module."""

from typing import Dict, Any
from .models import RepoConfig, ToolConfig, PrStackerConfig, StackTreeCommentConfig

__all__ = ['Config', 'default_config', 'RepoConfig', 'ToolConfig', 'PrStackerConfig',
           'StackTreeCommentConfig']

class Config(PrStackerConfig):
    """Config object holding repository and tool config.

    Built from a plain nested dict as produced by the config parser.
    """
    def __init__(self, config: Dict[str, Dict[str, Any]]):
        """Initialize with parsed config dict."""
        repo_config = config.get('repo', {})
        tool_config = config.get('tool', {})

        super().__init__(
            repo=RepoConfig.model_validate(repo_config),
            tool=ToolConfig.model_validate(tool_config),
        )

def default_config() -> Config:
    """Get default config without reading the repository config file."""
    return Config({
        'repo': {},
        'tool': {
            'concurrency': 0
        }
    })
