from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class User:
    id: str
    username: str
    display_name: Optional[str] = None
