from dataclasses import dataclass
from typing import Optional


@dataclass
class ChatResponse:
    text: str
    turn_count: int
    latency_ms: Optional[int] = None
    oracle_latency_ms: Optional[int] = None


@dataclass
class LoginResult:
    token: str
    username: str
