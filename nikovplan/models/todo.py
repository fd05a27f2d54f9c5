from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, field_validator


@dataclass
class TodoItem:
    """A to-do entry; ``id`` is assigned by the store"""
    id: str
    text: str
    completed: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TodoItem":
        return cls(
            id=str(row["id"]),
            text=row.get("text") or "",
            completed=bool(row.get("completed", False)),
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "completed": self.completed}


class TodoCreate(BaseModel):
    text: str = Field(..., max_length=500)

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Todo text must not be empty")
        return v


class TodoUpdate(BaseModel):
    completed: bool
