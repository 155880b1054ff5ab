from datetime import datetime
from typing import List, Literal, Optional
import base64

import pydantic


class Model(pydantic.BaseModel):
    pass


class Content(Model):
    type: str
    encoding: Literal["base64"]
    size: int
    name: str
    path: str
    content: str
    sha: str
    url: str
    html_url: str
    download_url: Optional[str] = None

    def decoded_content(self) -> str:
        if self.encoding != "base64":
            raise ValueError(f"Unknown encoding {self.encoding}")
        return base64.b64decode(self.content).decode()


class User(Model):
    login: str
    id: Optional[int] = None


class Label(Model):
    name: str


class PullRequestRef(Model):
    url: str


class Issue(Model):
    url: str
    id: int
    number: int
    state: Literal["open", "closed"]
    user: Optional[User] = None
    labels: List[Label] = pydantic.Field(default_factory=list)
    # only present when the issue is a pull request
    pull_request: Optional[PullRequestRef] = None

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request is not None

    @property
    def label_names(self) -> List[str]:
        return [label.name for label in self.labels]


class PrConnection(Model):
    ref: str
    sha: str


class PullRequest(Model):
    url: str
    id: int
    number: int
    state: Literal["open", "closed"]
    created_at: datetime
    updated_at: datetime
    merged_at: Optional[datetime] = None
    # null while GitHub is still computing the merge commit
    mergeable: Optional[bool] = None
    head: PrConnection
    base: PrConnection
    html_url: Optional[str] = None

    def __str__(self) -> str:
        return f"PR(#{self.number}, {self.id})"


class IssueComment(Model):
    id: int
    body: str
    user: Optional[User] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    html_url: Optional[str] = None


class CommitStatus(Model):
    url: Optional[str] = None
    id: int
    state: Literal["failure", "pending", "success", "error"]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    context: str
