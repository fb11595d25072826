"""Shared helpers for the test suite."""

from datetime import date


TODAY = date(2024, 3, 15)


def read_note(path: str) -> str:
    with open(path, "r", encoding="utf-8") as handle:
        return handle.read()
