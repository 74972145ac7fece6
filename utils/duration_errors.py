"""Exceptions raised while parsing or computing durations."""

from __future__ import annotations


class DurationError(ValueError):
    """Base class for every duration failure."""


class EmptyOrInvalid(DurationError):
    def __init__(self, text: object) -> None:
        self.text = text
        super().__init__(f"Durée invalide : {text!r}")


class UnknownUnit(DurationError):
    def __init__(self, unit: str) -> None:
        self.unit = unit
        super().__init__(f"Unité inconnue : {unit!r}")


class MalformedNumber(DurationError):
    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"Nombre invalide : {text!r}")


class InvalidMagnitude(DurationError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Durée incohérente : {detail}")


class UnknownZone(DurationError):
    def __init__(self, zone: str) -> None:
        self.zone = zone
        super().__init__(f"Fuseau horaire inconnu : {zone!r}")
