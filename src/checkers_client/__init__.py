"""Checkers client package exposing the sync layer and its building blocks."""

from .board import Board, Coord, Piece
from .client import CheckersClient
from .config import ClientSettings
from .session import GameSession

__all__ = ["Board", "CheckersClient", "ClientSettings", "Coord", "GameSession", "Piece"]
