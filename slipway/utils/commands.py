"""Cuprum catalogue for slipway command execution.

Every external executable slipway may invoke is registered here. The
repository adapter builds its git invocations through ``sh.make`` inside a
``scoped(allowlist=SLIPWAY_CATALOGUE.allowlist)`` block, so an unregistered
programme fails before anything is spawned.
"""

from __future__ import annotations

from cuprum import Program, ProgramCatalogue, ProjectSettings

GIT = Program("git")

_SLIPWAY_PROJECT = ProjectSettings(
    name="slipway",
    programs=(GIT,),
    documentation_locations=("DESIGN.md#process-execution",),
    noise_rules=(),
)

# - git: branch and status checks, tag discovery, commit log collection and
#   the release commit/tag.
SLIPWAY_CATALOGUE = ProgramCatalogue(projects=(_SLIPWAY_PROJECT,))

__all__ = ["GIT", "SLIPWAY_CATALOGUE"]
