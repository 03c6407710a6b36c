"""Data models produced while resolving a directory to a repository."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RemoteSpec(BaseModel):
    """One remote discovered in a git configuration file."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Remote name, e.g. 'origin'")
    url: str = Field(description="Raw URL as stored in git configuration")


class RepositoryResolution(BaseModel):
    """Outcome of resolving repository/directory input to owner/repo."""

    model_config = ConfigDict(frozen=True)

    repository: str = Field(description="Normalized 'owner/repo' identifier")
    directory: Optional[str] = Field(default=None, description="Input directory, when resolved from one")
    is_remote: bool = Field(default=True, description="Whether a remote URL had to be parsed")
    remote_name: Optional[str] = Field(default=None, description="Remote the repository was taken from")
    remote_url: Optional[str] = Field(default=None, description="Raw URL of that remote")

    @property
    def owner(self) -> str:
        return self.repository.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.repository.split("/", 1)[1]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return self.model_dump(exclude_none=True)
