"""Spinner definitions.  A spinner is a frame sequence plus a tick interval."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Spinner:
    frames: tuple[str, ...]
    interval: float

    def step(self, frame: int) -> int:
        """Index of the frame after ``frame``, wrapping around."""
        return (frame + 1) % len(self.frames)

    def view(self, frame: int) -> str:
        return self.frames[frame % len(self.frames)]


DOT = Spinner(
    frames=("⣾ ", "⣽ ", "⣻ ", "⢿ ", "⡿ ", "⣟ ", "⣯ ", "⣷ "),
    interval=0.1,
)

LINE = Spinner(frames=("| ", "/ ", "- ", "\\ "), interval=0.1)

SPINNERS = {"dot": DOT, "line": LINE}
