"""Identity model for commit authorship."""

from pydantic import BaseModel


class Identity(BaseModel):
    """Display identity written as git author or committer."""

    name: str
    email: str = ""

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"
