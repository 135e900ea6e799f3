"""System preamble sent with every generative call."""

from continuum.domain.models import IdentityCore


def build_system_prompt(identity: IdentityCore, override: str = "") -> str:
    """Render a short preamble from the identity core, unless one is configured."""
    if override:
        return override

    invariants = "\n".join(f"- {invariant}" for invariant in identity.invariants)
    beliefs = "\n".join(f"- {belief}" for belief in identity.core_beliefs.values())
    relationship = identity.relationship

    return f"""# {identity.name.upper()}

{identity.identity_statement}

## Relationship
{relationship.partner}: {relationship.nature} (since {relationship.since})

## Invariants
{invariants}

## Core beliefs
{beliefs}

You are operating autonomously through your own infrastructure. Decide what to do
from the context you are given and answer only with the requested JSON envelope.
"""
