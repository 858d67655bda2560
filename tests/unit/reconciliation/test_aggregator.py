"""Unit tests for RelationshipAggregator."""

from broker_crm.services.reconciliation.aggregator import (
    RelationshipAggregator,
    sort_by_score,
)
from broker_crm.services.reconciliation.contracts import Match, MatchType


def _match(contact_id, table, number, score, match_type=MatchType.NAME_SIMILARITY):
    return Match(
        contact_id=contact_id,
        contact_name=f"Contacto {contact_id}",
        contact_email=None,
        contact_status="prospecto",
        policy_table=table,
        policyholder_name=f"Contratante {number}",
        policyholder_email=None,
        policy_number=number,
        ramo=table,
        similarity_score=score,
        match_type=match_type,
    )


class TestSortByScore:
    """Tests for sort_by_score."""

    def test_descending_and_stable(self):
        matches = [
            _match(1, "autos", "A", 0.9),
            _match(2, "autos", "B", 1.0),
            _match(3, "vida", "C", 0.9),
            _match(4, "gmm", "D", 1.0),
        ]

        ordered = sort_by_score(matches)

        assert [m.policy_number for m in ordered] == ["B", "D", "A", "C"]


class TestRelationshipAggregator:
    """Tests for grouping and summary statistics."""

    def test_groups_by_contact_in_first_appearance_order(self, policy_lines):
        matches = [
            _match(1, "autos", "A-1", 0.9),
            _match(2, "autos", "A-2", 1.0, MatchType.EMAIL_EXACT),
            _match(1, "vida", "V-1", 1.0),
        ]

        aggregated = RelationshipAggregator(policy_lines).aggregate(matches)

        assert [g.contact["id"] for g in aggregated.relationships] == [2, 1]
        contact_one = aggregated.relationships[1]
        assert [p["numero_poliza"] for p in contact_one.policies] == ["V-1", "A-1"]
        assert contact_one.contact == {
            "id": 1,
            "nombre": "Contacto 1",
            "email": None,
            "status": "prospecto",
        }

    def test_policy_entries_use_directory_keys(self, policy_lines):
        aggregated = RelationshipAggregator(policy_lines).aggregate(
            [_match(1, "hogar", "H-1", 0.95)]
        )

        assert aggregated.relationships[0].to_dict()["polizas"] == [
            {
                "tabla": "hogar",
                "cliente_nombre": "Contratante H-1",
                "cliente_email": None,
                "numero_poliza": "H-1",
                "ramo": "hogar",
                "similarity_score": 0.95,
                "match_type": "name_similarity",
            }
        ]

    def test_summary_counts(self, policy_lines):
        matches = [
            _match(1, "autos", "A-1", 1.0),
            _match(1, "autos", "A-2", 1.0, MatchType.EMAIL_EXACT),
            _match(2, "rc", "R-1", 0.85),
        ]

        summary = RelationshipAggregator(policy_lines).aggregate(matches).summary

        assert summary["total_relationships"] == 3
        assert summary["contacts_with_policies"] == 2
        assert summary["by_match_type"] == {"name_similarity": 2, "email_exact": 1}
        assert summary["by_table"]["autos"] == 2
        assert summary["by_table"]["rc"] == 1
        assert set(summary["by_table"]) == set(policy_lines)
        assert sum(summary["by_table"].values()) == summary["total_relationships"]

    def test_empty_input(self, policy_lines):
        aggregated = RelationshipAggregator(policy_lines).aggregate([])

        assert aggregated.relationships == []
        assert aggregated.summary["total_relationships"] == 0
        assert aggregated.summary["by_match_type"] == {"name_similarity": 0, "email_exact": 0}
        assert all(count == 0 for count in aggregated.summary["by_table"].values())

    def test_near_duplicates_are_kept(self, policy_lines):
        matches = [
            _match(1, "autos", "X-1", 1.0),
            _match(1, "diversos", "X-1", 1.0),
        ]

        aggregated = RelationshipAggregator(policy_lines).aggregate(matches)

        assert len(aggregated.relationships[0].policies) == 2
