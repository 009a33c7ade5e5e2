"""Pydantic models for config types."""

from typing import Optional
from pydantic import BaseModel, Field

class StackTreeCommentConfig(BaseModel):
    """Per-PR comment rendering the whole stack."""
    enable: bool = True
    skip_single_pr: bool = Field(default=True, alias="skipSinglePR")

    class Config:
        """Pydantic config."""
        extra = "allow"
        populate_by_name = True

class RepoConfig(BaseModel):
    """Repository configuration, read from .github/pr-stacker.yml."""
    enabled: bool = True
    # Trunk override; the repository default branch is used when unset
    main_branch: Optional[str] = Field(default=None, alias="mainBranch")
    restrict_commands_to_originator: bool = Field(default=True, alias="restrictCommandsToOriginator")
    single_comment: bool = Field(default=False, alias="singleComment")
    skip_ready_check: bool = Field(default=False, alias="skipReadyCheck")
    stack_tree_comment: StackTreeCommentConfig = Field(default_factory=StackTreeCommentConfig,
                                                       alias="stackTreeComment")
    github_repo_owner: Optional[str] = None
    github_repo_name: Optional[str] = None

    class Config:
        """Pydantic config."""
        extra = "allow"  # Unknown keys in the repo file are ignored
        populate_by_name = True

class ToolConfig(BaseModel):
    """Tool configuration."""
    concurrency: int = 0
    consistency_poll_interval: float = 1.0
    consistency_timeout: float = 30.0
    bot_name: str = "pr-stacker[bot]"

    class Config:
        """Pydantic config."""
        extra = "allow"

class PrStackerConfig(BaseModel):
    """Full prstacker configuration."""
    repo: RepoConfig = Field(default_factory=RepoConfig)
    tool: ToolConfig = Field(default_factory=ToolConfig)

    class Config:
        """Pydantic config."""
        extra = "allow"
