"""cfn_nag suppression metadata for synthesized resources."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from troposphere import BaseAWSObject

logger = logging.getLogger(__name__)

CFN_NAG_METADATA_KEY = "cfn_nag"


@dataclass(frozen=True)
class Suppression:
    """A single cfn_nag rule suppression."""

    rule_id: str
    reason: str

    def __post_init__(self) -> None:
        if not self.reason:
            raise ValueError(f"Suppression for {self.rule_id} requires a reason")

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.rule_id, "reason": self.reason}


def set_cfn_nag_suppressions(
    resource: BaseAWSObject, suppressions: Sequence[Suppression]
) -> BaseAWSObject:
    """
    Replace the cfn_nag suppressions on a resource.

    Other metadata keys are preserved. Applying the same suppressions again
    yields the same metadata.

    Args:
        resource: Resource already added to a template
        suppressions: Rules to suppress, each with a justification

    Returns:
        The resource, for chaining
    """
    metadata: Dict[str, Any] = dict(getattr(resource, "Metadata", None) or {})
    metadata[CFN_NAG_METADATA_KEY] = {
        "rules_to_suppress": [suppression.to_dict() for suppression in suppressions]
    }
    resource.Metadata = metadata

    logger.debug(
        f"Suppressed cfn_nag rules {[s.rule_id for s in suppressions]} on {resource.title}"
    )
    return resource


def cfn_nag_suppressions(resource: BaseAWSObject) -> List[Dict[str, str]]:
    """Get the cfn_nag suppressions currently set on a resource."""
    metadata = getattr(resource, "Metadata", None) or {}
    return list(metadata.get(CFN_NAG_METADATA_KEY, {}).get("rules_to_suppress", []))
