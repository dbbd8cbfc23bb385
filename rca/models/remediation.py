"""
Remediation Artifact Model
==========================
Pydantic model for one piece of generated fix advice.

Fields:
    category       — permission / merge_conflict / component_declaration / modifier_order / advice
    human_text     — advice shown to the developer
    snippet        — code or markup to paste (declaration, override, reordered chain)
    runtime_check  — runtime permission request template (dangerous permissions only)
"""
from typing import Literal, Optional

from pydantic import BaseModel

RemediationCategory = Literal[
    "permission",
    "merge_conflict",
    "component_declaration",
    "modifier_order",
    "advice",
]


class RemediationArtifact(BaseModel):
    category: RemediationCategory
    human_text: str
    snippet: Optional[str] = None
    runtime_check: Optional[str] = None
