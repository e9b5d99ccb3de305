"""Advisory move suggestions from an external model.

The oracle only ever proposes a move. :class:`OracleAdvisor` describes the
position, asks a transport for a suggestion and checks it against the live
session; deciding what to do when that fails is left to the caller.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import requests

from .game.grid import EDGE_KINDS, Edge
from .game.rules import GameSession


LOG = logging.getLogger("dotsquares.oracle")

STRATEGY_DIRECTIVE = (
    "Strategy:\n"
    "1. COMPLETE any square with 3 sides.\n"
    "2. DO NOT create a 3rd side for your opponent unless forced."
)

DEFAULT_MAX_MOVES = 35
DEFAULT_MODEL = "gemini-3-flash-preview"


class OracleError(Exception):
    pass


class OracleConfigError(OracleError):
    pass


class OracleTransportError(OracleError):
    pass


class OracleResponseError(OracleError):
    pass


class OracleInvalidMoveError(OracleError):
    pass


@dataclass(frozen=True)
class BoardDescription:
    horizontal: List[List[int]]
    vertical: List[List[int]]
    moves: List[Dict[str, object]]

    @classmethod
    def from_session(cls, session: GameSession, max_moves: int = DEFAULT_MAX_MOVES) -> "BoardDescription":
        # Position only: edge occupancy plus a capped list of legal moves
        grid = session.grid
        return cls(
            horizontal=[[1 if line else 0 for line in row] for row in grid.horizontal],
            vertical=[[1 if line else 0 for line in row] for row in grid.vertical],
            moves=[edge.to_dict() for edge in session.legal_moves()[:max_moves]],
        )

    def to_prompt(self, directive: str = STRATEGY_DIRECTIVE) -> str:
        return (
            "Dots and Squares game.\n"
            f"Board: Horizontal lines (1=exists): {json.dumps(self.horizontal)}. "
            f"Vertical lines (1=exists): {json.dumps(self.vertical)}.\n"
            f"{directive}\n"
            f"Moves available: {json.dumps(self.moves)}.\n"
            "Return JSON move."
        )


Transport = Callable[[BoardDescription, str], dict]


def parse_move(payload: object) -> Edge:
    """Turn a ``{"type": "h"|"v", "r": int, "c": int}`` reply into an :class:`Edge`."""

    if not isinstance(payload, dict):
        raise OracleResponseError(f"Expected a JSON object, got {type(payload).__name__}")

    kind = payload.get("type")
    r = payload.get("r")
    c = payload.get("c")
    if kind not in EDGE_KINDS:
        raise OracleResponseError(f"Unknown edge type: {kind!r}")
    # bool is an int subclass but never a coordinate
    if not all(isinstance(value, int) and not isinstance(value, bool) for value in (r, c)):
        raise OracleResponseError(f"Edge coordinates must be integers: {payload!r}")
    return Edge(kind, r, c)


class GeminiOracleClient:
    """Blocking transport for the Generative Language ``generateContent`` API."""

    _BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    _RESPONSE_SCHEMA = {
        "type": "OBJECT",
        "properties": {
            "type": {"type": "STRING", "enum": list(EDGE_KINDS)},
            "r": {"type": "INTEGER"},
            "c": {"type": "INTEGER"},
        },
        "required": ["type", "r", "c"],
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        timeout: float = 10.0,
    ) -> None:
        # Resolve credentials up front
        self.api_key = (api_key or os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", "")).strip()
        if not self.api_key:
            raise OracleConfigError(
                "Oracle API key missing. Set the GEMINI_API_KEY environment variable."
            )
        self.model = model
        self.timeout = timeout

    def __call__(self, description: BoardDescription, directive: str) -> dict:
        payload = {
            "contents": [{"parts": [{"text": description.to_prompt(directive)}]}],
            "generationConfig": {
                "temperature": 0,
                "maxOutputTokens": 1200,
                "responseMimeType": "application/json",
                "responseSchema": self._RESPONSE_SCHEMA,
                "thinkingConfig": {"thinkingBudget": 1000},
            },
        }
        data = self._post(f"models/{self.model}:generateContent", payload)
        return self._extract_move(data)

    def _post(self, path: str, payload: dict) -> dict:
        # Minimal wrapper over the REST call
        url = f"{self._BASE_URL}/{path}"
        try:
            response = requests.post(
                url,
                json=payload,
                params={"key": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise OracleTransportError("Could not reach the move-suggestion service.") from exc

        if response.status_code != 200:
            raise OracleTransportError(
                f"Move-suggestion service answered HTTP {response.status_code}."
            )

        try:
            return response.json()
        except ValueError as exc:
            raise OracleTransportError("Unexpected response from the move-suggestion service.") from exc

    @staticmethod
    def _extract_move(data: dict) -> dict:
        # The move arrives as JSON text inside the first candidate
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise OracleResponseError("Reply did not contain a candidate move.") from exc

        try:
            return json.loads(text)
        except (TypeError, json.JSONDecodeError) as exc:
            raise OracleResponseError(f"Candidate move is not JSON: {text!r}") from exc


class OracleAdvisor:
    def __init__(
        self,
        transport: Transport,
        max_retries: int = 1,
        max_moves: int = DEFAULT_MAX_MOVES,
        directive: str = STRATEGY_DIRECTIVE,
    ) -> None:
        self.transport = transport
        self.max_retries = max(0, max_retries)
        self.max_moves = max_moves
        self.directive = directive

    async def request_advised_move(self, session: GameSession) -> Optional[Edge]:
        if not session.legal_moves():
            return None

        description = BoardDescription.from_session(session, self.max_moves)
        edge = await self._ask(description)

        grid = session.grid
        if not grid.in_bounds(edge) or grid.is_claimed(edge):
            raise OracleInvalidMoveError(f"Oracle proposed an unavailable edge: {edge}")
        return edge

    async def _ask(self, description: BoardDescription) -> Edge:
        # One attempt plus a bounded number of retries
        attempts = self.max_retries + 1
        last_error: Optional[OracleError] = None
        for attempt in range(1, attempts + 1):
            try:
                payload = await asyncio.to_thread(self.transport, description, self.directive)
                return parse_move(payload)
            except (OracleTransportError, OracleResponseError) as exc:
                last_error = exc
                LOG.debug("Oracle attempt %d/%d failed: %s", attempt, attempts, exc)

        raise OracleTransportError(f"Oracle failed after {attempts} attempts: {last_error}") from last_error


__all__ = [
    "BoardDescription",
    "GeminiOracleClient",
    "OracleAdvisor",
    "OracleConfigError",
    "OracleError",
    "OracleInvalidMoveError",
    "OracleResponseError",
    "OracleTransportError",
    "STRATEGY_DIRECTIVE",
    "Transport",
    "parse_move",
]
