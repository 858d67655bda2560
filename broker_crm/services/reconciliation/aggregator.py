"""Groups raw matches by contact and compiles summary statistics."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from broker_crm.services.reconciliation.contracts import (
    GroupedRelationship,
    Match,
    MatchType,
)


@dataclass
class AggregatedRelationships:
    """Result of grouping a flat match list."""
    matches: List[Match]
    relationships: List[GroupedRelationship]
    summary: Dict[str, Any] = field(default_factory=dict)


def sort_by_score(matches: Sequence[Match]) -> List[Match]:
    """Best score first; ties keep discovery order."""
    return sorted(matches, key=lambda match: match.similarity_score, reverse=True)


class RelationshipAggregator:
    """Builds the grouped-by-contact view of a match list.

    Matches are not deduplicated here: the same contact can appear under
    several near-identical policies, including across lines.
    """

    def __init__(self, policy_lines: Sequence[str]):
        self.policy_lines = list(policy_lines)

    def aggregate(self, matches: Sequence[Match]) -> AggregatedRelationships:
        ordered = sort_by_score(matches)

        grouped: Dict[int, GroupedRelationship] = {}
        for match in ordered:
            group = grouped.get(match.contact_id)
            if group is None:
                group = GroupedRelationship(
                    contact={
                        "id": match.contact_id,
                        "nombre": match.contact_name,
                        "email": match.contact_email,
                        "status": match.contact_status,
                    }
                )
                grouped[match.contact_id] = group
            group.policies.append(match.to_policy_dict())

        relationships = list(grouped.values())
        return AggregatedRelationships(
            matches=ordered,
            relationships=relationships,
            summary=self.summarize(ordered, len(relationships)),
        )

    def summarize(self, matches: Sequence[Match], contacts_matched: int) -> Dict[str, Any]:
        by_match_type = {match_type.value: 0 for match_type in MatchType}
        by_table = {line: 0 for line in self.policy_lines}

        for match in matches:
            by_match_type[match.match_type.value] += 1
            by_table[match.policy_table] = by_table.get(match.policy_table, 0) + 1

        return {
            "total_relationships": len(matches),
            "contacts_with_policies": contacts_matched,
            "by_match_type": by_match_type,
            "by_table": by_table,
        }
