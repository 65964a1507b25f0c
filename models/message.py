"""
models/message.py
-----------------
Mensaje entrante normalizado (independiente de Telethon).
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class InboundMessage:
    id: int
    text: str
    chat_id: Optional[int] = None
    reply_to_id: Optional[int] = None

    @property
    def dedup_key(self) -> str:
        return f"{self.chat_id}-{self.id}"
