"""Unit tests for the match finder."""

import pytest

from broker_crm.services.reconciliation.contracts import (
    CancellationToken,
    ContactSummary,
    MatchType,
    PolicyHolder,
)
from broker_crm.services.reconciliation.match_finder import (
    MatchFinder,
    match_contact,
    match_line,
)


def _contact(contact_id, name, email=None, status="prospecto"):
    return ContactSummary(id=contact_id, full_name=name, email=email, status=status)


class TestMatchLine:
    """Tests for the per-line matching passes."""

    def test_name_match_suppresses_duplicate_email_match(self):
        contacts = [_contact(1, "María López", "m@x.com")]
        rows = [PolicyHolder(contratante="Maria Lopez", email="m@x.com", numero_poliza="A-100", ramo=None)]

        matches = match_line(contacts, "autos", rows, threshold=0.8)

        assert len(matches) == 1
        match = matches[0]
        assert match.match_type == MatchType.NAME_SIMILARITY
        assert match.similarity_score == 1.0
        assert match.ramo == "autos"
        assert match.policy_number == "A-100"

    def test_email_match_is_case_insensitive(self):
        contacts = [_contact(3, "Roberto Gómez", "ROBERTO@EMPRESA.MX")]
        rows = [PolicyHolder(contratante="Transportes del Norte SA", email="roberto@empresa.mx", numero_poliza="A-200", ramo="Autos flotilla")]

        matches = match_line(contacts, "autos", rows, threshold=0.8)

        assert len(matches) == 1
        assert matches[0].match_type == MatchType.EMAIL_EXACT
        assert matches[0].similarity_score == 1.0
        assert matches[0].ramo == "Autos flotilla"

    def test_similarity_matches_come_before_email_matches(self):
        contacts = [
            _contact(1, "Laura Méndez", "shared@x.com"),
            _contact(2, "Pedro Sánchez"),
        ]
        rows = [
            PolicyHolder(contratante="Empresa Uno", email="shared@x.com", numero_poliza="P-1"),
            PolicyHolder(contratante="Pedro Sanchez", numero_poliza="P-2"),
        ]

        matches = match_line(contacts, "hogar", rows, threshold=0.8)

        assert [(m.contact_id, m.policy_number, m.match_type) for m in matches] == [
            (2, "P-2", MatchType.NAME_SIMILARITY),
            (1, "P-1", MatchType.EMAIL_EXACT),
        ]

    def test_repeated_email_rows_with_same_policy_number_emit_once(self):
        contacts = [_contact(1, "Laura Méndez", "l@x.com")]
        rows = [
            PolicyHolder(contratante="Empresa Uno", email="l@x.com", numero_poliza="P-1"),
            PolicyHolder(contratante="Empresa Uno", email="L@X.COM", numero_poliza="P-1"),
        ]

        matches = match_line(contacts, "rc", rows, threshold=0.8)

        assert len(matches) == 1

    def test_never_emits_scores_at_or_below_threshold(self):
        contacts = [_contact(2, "Juan Carlos Pérez")]
        rows = [
            PolicyHolder(contratante="Juan Pérez López", numero_poliza="X-1"),  # 0.667
            PolicyHolder(contratante="Pérez Juan Carlos López Soto", numero_poliza="X-2"),  # 0.75
            PolicyHolder(contratante="Juan Carlos Pérez Soto", numero_poliza="X-3"),  # 0.9
        ]

        matches = match_line(contacts, "vida", rows, threshold=0.8)

        assert [m.policy_number for m in matches] == ["X-3"]
        assert all(m.similarity_score > 0.8 for m in matches)

    def test_no_email_pass_without_emails(self):
        contacts = [_contact(1, "Laura Méndez", None)]
        rows = [PolicyHolder(contratante="Empresa Uno", email=None, numero_poliza="P-1")]

        assert match_line(contacts, "rc", rows, threshold=0.8) == []


class TestMatchContact:
    """Tests for the per-contact lookup."""

    def test_lower_threshold_accepts_partial_overlap(self):
        contact = _contact(2, "Juan Carlos Pérez")
        rows = [PolicyHolder(contratante="Pérez Juan Carlos López Soto", numero_poliza="V-1", ramo="vida")]

        matches = match_contact(contact, "vida", rows, threshold=0.7)

        assert len(matches) == 1
        assert matches[0].similarity_score == pytest.approx(0.75)
        assert matches[0].match_type == MatchType.NAME_SIMILARITY

    def test_email_takes_precedence_over_name(self):
        contact = _contact(1, "María López", "m@x.com")
        rows = [PolicyHolder(contratante="Maria Lopez", email="M@x.com", numero_poliza="A-100")]

        matches = match_contact(contact, "autos", rows, threshold=0.7)

        assert matches[0].match_type == MatchType.EMAIL_EXACT
        assert matches[0].similarity_score == 1.0


class TestMatchFinderScan:
    """Tests for MatchFinder.scan across policy lines."""

    @pytest.mark.asyncio
    async def test_scan_merges_lines_in_configured_order(
        self, contact_store, policy_store, policy_lines
    ):
        finder = MatchFinder(policy_store, policy_lines)
        contacts = await contact_store.list_contacts()

        result = await finder.scan(contacts, threshold=0.8)

        assert [(m.policy_table, m.contact_id) for m in result.matches] == [
            ("autos", 1),
            ("autos", 3),
            ("gmm", 1),
            ("vida", 4),
        ]
        assert result.failed_lines == []
        assert result.cancelled is False

    @pytest.mark.asyncio
    async def test_missing_table_is_skipped(
        self, contact_store, sample_policies, policy_lines, make_policy_store
    ):
        store = make_policy_store(sample_policies, missing=["gmm"])
        finder = MatchFinder(store, policy_lines)

        result = await finder.scan(await contact_store.list_contacts(), threshold=0.8)

        assert result.failed_lines == ["gmm"]
        assert all(m.policy_table != "gmm" for m in result.matches)
        assert {m.policy_table for m in result.matches} == {"autos", "vida"}
        assert sorted(store.requested) == sorted(policy_lines)

    @pytest.mark.asyncio
    async def test_contacts_without_name_are_skipped(self, policy_lines, make_policy_store):
        store = make_policy_store(
            {"autos": [{"contratante": "Cualquiera", "email": "nadie@x.com", "numero_poliza": "A-1"}]}
        )
        finder = MatchFinder(store, policy_lines)

        result = await finder.scan([_contact(5, "", "nadie@x.com"), _contact(6, None)], threshold=0.8)

        assert result.matches == []

    @pytest.mark.asyncio
    async def test_rows_without_contratante_are_skipped(self, policy_lines, make_policy_store):
        store = make_policy_store(
            {"autos": [{"contratante": None, "email": "m@x.com", "numero_poliza": "A-1"}]}
        )
        finder = MatchFinder(store, policy_lines)

        result = await finder.scan([_contact(1, "María López", "m@x.com")], threshold=0.8)

        assert result.matches == []

    @pytest.mark.asyncio
    async def test_cancelled_before_start_skips_every_line(
        self, contact_store, policy_store, policy_lines
    ):
        token = CancellationToken()
        token.cancel()
        finder = MatchFinder(policy_store, policy_lines)

        result = await finder.scan(await contact_store.list_contacts(), 0.8, cancel_token=token)

        assert result.cancelled is True
        assert result.matches == []
        assert result.skipped_lines == policy_lines
        assert policy_store.requested == []

    @pytest.mark.asyncio
    async def test_cancel_mid_scan_keeps_finished_lines(
        self, contact_store, sample_policies, policy_lines, make_policy_store
    ):
        token = CancellationToken()
        store = make_policy_store(sample_policies, cancel_after="autos", cancel_token=token)
        finder = MatchFinder(store, policy_lines, max_concurrent_lines=1)

        result = await finder.scan(await contact_store.list_contacts(), 0.8, cancel_token=token)

        assert result.cancelled is True
        assert [m.policy_table for m in result.matches] == ["autos", "autos"]
        assert result.skipped_lines == policy_lines[1:]

    @pytest.mark.asyncio
    async def test_scan_contact_reports_failed_lines(
        self, sample_policies, policy_lines, make_policy_store
    ):
        store = make_policy_store(sample_policies, missing=["autos"])
        finder = MatchFinder(store, policy_lines)

        result = await finder.scan_contact(_contact(1, "María López", "m@x.com"), threshold=0.7)

        assert result.failed_lines == ["autos"]
        assert [m.policy_number for m in result.matches] == ["G-7"]

    @pytest.mark.asyncio
    async def test_names_that_normalize_to_nothing_are_skipped(
        self, policy_lines, make_policy_store
    ):
        store = make_policy_store(
            {
                "autos": [{"contratante": "Transportes del Norte SA", "numero_poliza": "A-200"}],
                "vida": [
                    {"contratante": "Ana Torres", "numero_poliza": "V-2"},
                    {"contratante": "***", "email": "m@x.com", "numero_poliza": "V-3"},
                ],
            }
        )
        finder = MatchFinder(store, policy_lines)
        contacts = [
            _contact(7, "李小龙"),
            _contact(8, "-"),
            _contact(9, "María López", "m@x.com"),
        ]

        result = await finder.scan(contacts, threshold=0.8)

        assert result.matches == []
