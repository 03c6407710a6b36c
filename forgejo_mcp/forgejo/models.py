"""Data models for Forgejo/Gitea API responses."""

from typing import Any, Dict, List, Optional


def _login(user: Optional[Dict[str, Any]]) -> str:
    return (user or {}).get("login", "")


class Issue:
    """Represents a Forgejo issue."""

    def __init__(self, data: Dict[str, Any]):
        self.id = data.get("id", 0)
        self.number = data.get("number", 0)
        self.title = data.get("title", "")
        self.body = data.get("body", "")
        self.state = data.get("state", "open")
        self.user = _login(data.get("user"))
        self.labels = [label.get("name", "") for label in data.get("labels") or []]
        self.url = data.get("html_url", "")
        self.comments = data.get("comments", 0)
        self.created = data.get("created_at", "")
        self.updated = data.get("updated_at", "")
        self.closed = data.get("closed_at")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "number": self.number,
            "title": self.title,
            "body": self.body,
            "state": self.state,
            "user": self.user,
            "labels": self.labels,
            "url": self.url,
            "comments": self.comments,
            "created": self.created,
            "updated": self.updated,
            "closed": self.closed
        }


class Comment:
    """Represents a comment on an issue or pull request."""

    def __init__(self, data: Dict[str, Any]):
        self.id = data.get("id", 0)
        self.body = data.get("body", "")
        self.user = _login(data.get("user"))
        self.url = data.get("html_url", "")
        self.created = data.get("created_at", "")
        self.updated = data.get("updated_at", "")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "body": self.body,
            "user": self.user,
            "url": self.url,
            "created": self.created,
            "updated": self.updated
        }


class CommentList:
    """A page of comments plus pagination metadata."""

    def __init__(self, comments: List[Comment], total: int, limit: int, offset: int):
        self.comments = comments
        self.total = total
        self.limit = limit
        self.offset = offset

    def to_dict(self) -> Dict[str, Any]:
        return {
            "comments": [comment.to_dict() for comment in self.comments],
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset
        }


class PullRequest:
    """Represents a Forgejo pull request.

    List endpoints and the single-PR endpoint return the same shape, so the
    detail fields are always populated when the server sends them.
    """

    def __init__(self, data: Dict[str, Any]):
        self.id = data.get("id", 0)
        self.number = data.get("number", 0)
        self.title = data.get("title", "")
        self.body = data.get("body", "")
        self.state = data.get("state", "open")
        self.user = _login(data.get("user"))
        self.created = data.get("created_at", "")
        self.updated = data.get("updated_at", "")
        self.head = self._branch(data.get("head"))
        self.base = self._branch(data.get("base"))
        self.url = data.get("html_url", "")
        self.diff_url = data.get("diff_url", "")
        self.patch_url = data.get("patch_url", "")
        self.labels = [label.get("name", "") for label in data.get("labels") or []]
        self.milestone = (data.get("milestone") or {}).get("title")
        self.assignees = [_login(assignee) for assignee in data.get("assignees") or []]
        self.comments = data.get("comments", 0)
        self.draft = data.get("draft", False)
        self.mergeable = data.get("mergeable", False)
        self.merged = data.get("merged", False)
        self.merged_at = data.get("merged_at")
        self.merged_by = _login(data.get("merged_by")) or None
        self.merge_commit_sha = data.get("merge_commit_sha")
        self.closed = data.get("closed_at")

    @staticmethod
    def _branch(data: Optional[Dict[str, Any]]) -> Dict[str, str]:
        data = data or {}
        return {"ref": data.get("ref", ""), "sha": data.get("sha", "")}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "number": self.number,
            "title": self.title,
            "body": self.body,
            "state": self.state,
            "user": self.user,
            "created": self.created,
            "updated": self.updated,
            "head": self.head,
            "base": self.base,
            "url": self.url,
            "diff_url": self.diff_url,
            "patch_url": self.patch_url,
            "labels": self.labels,
            "milestone": self.milestone,
            "assignees": self.assignees,
            "comments": self.comments,
            "draft": self.draft,
            "mergeable": self.mergeable,
            "merged": self.merged,
            "merged_at": self.merged_at,
            "merged_by": self.merged_by,
            "merge_commit_sha": self.merge_commit_sha,
            "closed": self.closed
        }
