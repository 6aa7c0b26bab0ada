"""
Persona models.

A persona is prompt context for the backend. The core never
interprets the attribute bag, it only forwards it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from .enums import UserRole


@dataclass(frozen=True)
class PersonaAttributes:
    """Free-text attribute bag describing the evaluator."""
    age: str = ""
    tech_savviness: str = ""
    domain_knowledge: str = ""
    goals: str = ""
    environment: str = ""
    frustration_tolerance: str = ""
    device_habits: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (camelCase, as exchanged with the UI)."""
        return {
            "age": self.age,
            "techSavviness": self.tech_savviness,
            "domainKnowledge": self.domain_knowledge,
            "goals": self.goals,
            "environment": self.environment,
            "frustrationTolerance": self.frustration_tolerance,
            "deviceHabits": self.device_habits,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersonaAttributes":
        """Create from dictionary. Accepts camelCase or snake_case keys."""
        def pick(camel: str, snake: str) -> str:
            return str(data.get(camel, data.get(snake, "")) or "")

        return cls(
            age=pick("age", "age"),
            tech_savviness=pick("techSavviness", "tech_savviness"),
            domain_knowledge=pick("domainKnowledge", "domain_knowledge"),
            goals=pick("goals", "goals"),
            environment=pick("environment", "environment"),
            frustration_tolerance=pick("frustrationTolerance", "frustration_tolerance"),
            device_habits=pick("deviceHabits", "device_habits"),
        )


@dataclass(frozen=True)
class Persona:
    """A named evaluator profile."""
    id: str
    name: str
    role: UserRole = UserRole.USER
    description: str = ""
    attributes: PersonaAttributes = field(default_factory=PersonaAttributes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role.value,
            "description": self.description,
            "attributes": self.attributes.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Persona":
        """Create from dictionary."""
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            role=UserRole(data.get("role", UserRole.USER.value)),
            description=data.get("description", ""),
            attributes=PersonaAttributes.from_dict(data.get("attributes", {})),
        )
