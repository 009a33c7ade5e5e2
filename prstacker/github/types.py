"""Type definitions for GitHub webhook payloads."""

from typing import Any, Dict, Optional
from pydantic import BaseModel

# Only the fields the bot reads are modelled; everything else is ignored.

class User(BaseModel):
    login: str
    type: Optional[str] = None

class Repository(BaseModel):
    name: str
    full_name: str
    owner: User
    default_branch: Optional[str] = None

class Installation(BaseModel):
    id: int

class Comment(BaseModel):
    id: int
    body: str
    user: User

class Issue(BaseModel):
    number: int
    title: str = ""
    user: Optional[User] = None
    # Present (as an object of URLs) only when the issue is a pull request
    pull_request: Optional[Dict[str, Any]] = None

class PullRequestRef(BaseModel):
    ref: str
    sha: Optional[str] = None

class PullRequestPayload(BaseModel):
    number: int
    title: str = ""
    body: Optional[str] = None
    base: PullRequestRef
    head: PullRequestRef
    user: Optional[User] = None

class IssueCommentEvent(BaseModel):
    """issue_comment webhook payload."""
    action: str
    issue: Issue
    comment: Comment
    repository: Repository
    sender: User
    installation: Optional[Installation] = None

    @property
    def is_pull_request(self) -> bool:
        return self.issue.pull_request is not None

    @property
    def is_from_bot(self) -> bool:
        return self.sender.type == "Bot" or self.sender.login.endswith("[bot]")

class PullRequestEvent(BaseModel):
    """pull_request webhook payload."""
    action: str
    number: int
    pull_request: PullRequestPayload
    repository: Repository
    sender: User
    installation: Optional[Installation] = None

def parse_issue_comment_event(payload: Dict[str, Any]) -> IssueCommentEvent:
    """Parse an issue_comment payload into its Pydantic model."""
    return IssueCommentEvent.model_validate(payload)

def parse_pull_request_event(payload: Dict[str, Any]) -> PullRequestEvent:
    """Parse a pull_request payload into its Pydantic model."""
    return PullRequestEvent.model_validate(payload)
