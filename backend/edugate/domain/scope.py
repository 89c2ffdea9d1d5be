from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class UnassignedBranchPolicy(str, Enum):
    """What a principal without a home branch may see inside their school."""

    all_branches = "all_branches"
    no_branches = "no_branches"


@dataclass(frozen=True)
class TenantScope:
    school_id: UUID
    branch_id: UUID | None
    is_branch_restricted: bool

    def cache_fragment(self) -> str:
        branch = str(self.branch_id) if self.branch_id is not None else "-"
        return f"{branch}:{'r' if self.is_branch_restricted else 'u'}"
