"""
Participants - the fixed pair of people sharing the car.

Exactly two identities are configured at deployment. Every attribution rule
in the ledger is expressed over this pair ("credit the other one"), so the
business logic never names a person directly.
"""

import secrets
from typing import Dict, Iterable, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_validator


class Participants(BaseModel):
    """
    The two ledger participants plus the shared-secret login codes.

    Invariants:
    - exactly two distinct, non-empty names
    - every access code maps to one of the two names
    """
    model_config = ConfigDict(frozen=True)

    names: Tuple[str, str]
    access_codes: Dict[str, str] = {}

    @model_validator(mode="after")
    def _check_pair(self) -> "Participants":
        first, second = self.names
        if not first or not second:
            raise ValueError("Participant names must not be empty")
        if first == second:
            raise ValueError("Participants must be two distinct names")
        for code, name in self.access_codes.items():
            if not code:
                raise ValueError("Access codes must not be empty")
            if name not in self.names:
                raise ValueError(f"Access code maps to unknown participant: {name}")
        return self

    @classmethod
    def from_config(cls, names: Iterable[str], access_codes: Optional[Mapping[str, str]] = None) -> "Participants":
        names = tuple(names)
        if len(names) != 2:
            raise ValueError(f"Exactly two participants are required, got {len(names)}")
        return cls(names=names, access_codes=dict(access_codes or {}))

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def other(self, name: str) -> str:
        """Return the participant who is not `name`."""
        first, second = self.names
        if name == first:
            return second
        if name == second:
            return first
        raise KeyError(name)

    def zero_km(self) -> Dict[str, int]:
        return {name: 0 for name in self.names}

    def resolve_code(self, code: str) -> Optional[str]:
        """Map a login code to its participant, or None if it is not known."""
        code = code.strip()
        match = None
        # constant-time, every code is compared
        for known, name in self.access_codes.items():
            if secrets.compare_digest(known.encode(), code.encode()):
                match = name
        return match
