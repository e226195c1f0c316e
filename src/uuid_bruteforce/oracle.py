import uuid
from dataclasses import dataclass


# UUID v4 carries 122 random bits (6 bits are fixed for version/variant).
SPACE_BITS = 122
SPACE_SIZE = 2 ** SPACE_BITS


def derive(candidate: str) -> str:
    """Derive the public UUID for a private UUID: uuid5(namespace=private, name=private)."""
    return str(uuid.uuid5(uuid.UUID(candidate), candidate))


@dataclass(frozen=True, slots=True)
class Target:
    """The hidden private UUID and the public UUID derived from it."""

    secret: str
    public: str

    @classmethod
    def from_secret(cls, secret: str) -> "Target":
        return cls(secret=secret, public=derive(secret))

    @classmethod
    def generate(cls) -> "Target":
        return cls.from_secret(str(uuid.uuid4()))
