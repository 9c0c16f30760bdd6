"""Subjects that request access, and their types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

_KNOWN_TYPES = ("user", "service", "device", "group")


@dataclass(frozen=True)
class SubjectType:
    """Kind of subject: one of the built-in kinds or a custom name."""

    name: str
    is_custom: bool = False

    USER: ClassVar[SubjectType]
    SERVICE: ClassVar[SubjectType]
    DEVICE: ClassVar[SubjectType]
    GROUP: ClassVar[SubjectType]

    @classmethod
    def parse(cls, text: str) -> SubjectType:
        """Parse a subject type; unknown names become custom types."""
        lowered = text.lower()
        if lowered in _KNOWN_TYPES:
            return cls(lowered)
        return cls(text, is_custom=True)

    def __str__(self) -> str:
        return self.name


SubjectType.USER = SubjectType("user")
SubjectType.SERVICE = SubjectType("service")
SubjectType.DEVICE = SubjectType("device")
SubjectType.GROUP = SubjectType("group")


@dataclass
class Subject:
    """An entity whose access is being checked."""

    id: str
    subject_type: SubjectType = SubjectType.USER

    @classmethod
    def user(cls, subject_id: str) -> Subject:
        return cls(subject_id, SubjectType.USER)

    @classmethod
    def service(cls, subject_id: str) -> Subject:
        return cls(subject_id, SubjectType.SERVICE)

    @classmethod
    def device(cls, subject_id: str) -> Subject:
        return cls(subject_id, SubjectType.DEVICE)

    @classmethod
    def group(cls, subject_id: str) -> Subject:
        return cls(subject_id, SubjectType.GROUP)

    @classmethod
    def custom(cls, subject_id: str, custom_type: str) -> Subject:
        return cls(subject_id, SubjectType(custom_type, is_custom=True))

    def __str__(self) -> str:
        return f"{self.subject_type}:{self.id}"