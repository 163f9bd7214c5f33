"""The caller a request is served for."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Identity taken from a verified bearer token.

    ``subject`` is the token's ``sub`` claim and doubles as the tenant: every
    subject owns its own set of API keys. ``roles`` and ``email`` are carried
    along from the optional claims of the same names.
    """

    subject: str
    roles: tuple[str, ...] = ()
    email: str | None = None

    @property
    def tenant(self) -> str:
        return self.subject
