"""Match finder: links directory contacts to policy-line rows.

For each policy line the finder runs two passes over (contact, row) pairs:

1. name similarity: a ``name_similarity`` match when the score is above the
   threshold
2. exact email: an ``email_exact`` match (score 1.0) when both emails are
   present and equal ignoring case, unless the same
   (contact, table, policy number) triple was already matched on this line

Names are normalized once per record and rows are indexed by lowercase email,
so the email pass is linear. The match list is identical, in content and order,
to comparing every contact with every row.
"""

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from broker_crm.services.reconciliation.contracts import (
    CancellationToken,
    ContactSummary,
    Match,
    MatchType,
    PolicyHolder,
    PolicyStore,
    ScanResult,
)
from broker_crm.services.reconciliation.normalizer import name_tokens, normalize_name
from broker_crm.services.reconciliation.similarity import (
    EXACT_MATCH_SCORE,
    similarity_from_normalized,
)
from broker_crm.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class _PreparedName:
    text: str
    tokens: List[str]

    @classmethod
    def of(cls, raw: str) -> "_PreparedName":
        text = normalize_name(raw)
        return cls(text=text, tokens=name_tokens(text))


def has_comparable_name(value: Optional[str]) -> bool:
    """True when the name keeps at least one character after normalization."""
    return bool(normalize_name(value))


def _email_key(value: Optional[str]) -> Optional[str]:
    return value.lower() if value else None


def usable_contacts(contacts: Sequence[ContactSummary]) -> List[ContactSummary]:
    """Drop contacts whose name is missing or normalizes to nothing, logging each one."""
    usable = []
    for contact in contacts:
        if not has_comparable_name(contact.full_name):
            LOGGER.warning(
                "Skipping contact without a comparable nombre_completo",
                extra={"contact_id": contact.id},
            )
            continue
        usable.append(contact)
    return usable


def usable_rows(line: str, rows: Sequence[PolicyHolder]) -> List[PolicyHolder]:
    """Drop policy rows whose policyholder name normalizes to nothing, logging each one."""
    usable = []
    for row in rows:
        if not has_comparable_name(row.contratante):
            LOGGER.warning(
                "Skipping policy row without a comparable contratante",
                extra={"table": line, "numero_poliza": row.numero_poliza},
            )
            continue
        usable.append(row)
    return usable


def build_match(
    contact: ContactSummary,
    line: str,
    row: PolicyHolder,
    score: float,
    match_type: MatchType,
) -> Match:
    return Match(
        contact_id=contact.id,
        contact_name=contact.full_name,
        contact_email=contact.email,
        contact_status=contact.status,
        policy_table=line,
        policyholder_name=row.contratante,
        policyholder_email=row.email,
        policy_number=row.numero_poliza,
        ramo=row.ramo or line,
        similarity_score=score,
        match_type=match_type,
    )


def match_line(
    contacts: Sequence[ContactSummary],
    line: str,
    rows: Sequence[PolicyHolder],
    threshold: float,
) -> List[Match]:
    """Run both passes for one policy line.

    ``contacts`` and ``rows`` are expected to be pre-filtered with
    ``usable_contacts`` / ``usable_rows``.

    Args:
        contacts: Directory contacts
        line: Policy-line table name
        rows: Rows of that table
        threshold: Exclusive lower bound for name similarity

    Returns:
        List[Match]: Similarity matches (contact-major) then email matches
    """
    prepared_rows = [_PreparedName.of(row.contratante) for row in rows]
    matches: List[Match] = []
    seen: set[Tuple[int, str, Optional[str]]] = set()

    for contact in contacts:
        name = _PreparedName.of(contact.full_name)
        for row, row_name in zip(rows, prepared_rows):
            score = similarity_from_normalized(
                name.text, row_name.text, name.tokens, row_name.tokens
            )
            if score > threshold:
                matches.append(
                    build_match(contact, line, row, score, MatchType.NAME_SIMILARITY)
                )
                seen.add((contact.id, line, row.numero_poliza))

    rows_by_email: Dict[str, List[PolicyHolder]] = defaultdict(list)
    for row in rows:
        key = _email_key(row.email)
        if key:
            rows_by_email[key].append(row)

    for contact in contacts:
        key = _email_key(contact.email)
        if not key:
            continue
        for row in rows_by_email.get(key, ()):
            triple = (contact.id, line, row.numero_poliza)
            if triple in seen:
                continue
            matches.append(
                build_match(contact, line, row, EXACT_MATCH_SCORE, MatchType.EMAIL_EXACT)
            )
            seen.add(triple)

    return matches


def match_contact(
    contact: ContactSummary,
    line: str,
    rows: Sequence[PolicyHolder],
    threshold: float,
) -> List[Match]:
    """Policies of one line that belong to a single contact.

    A row matches when its email equals the contact's (ignoring case), which
    yields an ``email_exact`` match, or when the name similarity is above the
    threshold.
    """
    name = _PreparedName.of(contact.full_name)
    contact_email = _email_key(contact.email)
    matches = []

    for row in rows:
        if contact_email and _email_key(row.email) == contact_email:
            matches.append(
                build_match(contact, line, row, EXACT_MATCH_SCORE, MatchType.EMAIL_EXACT)
            )
            continue

        row_name = _PreparedName.of(row.contratante)
        score = similarity_from_normalized(
            name.text, row_name.text, name.tokens, row_name.tokens
        )
        if score > threshold:
            matches.append(
                build_match(contact, line, row, score, MatchType.NAME_SIMILARITY)
            )

    return matches


class MatchFinder:
    """Scans policy lines for rows that belong to directory contacts.

    Lines are fetched concurrently (bounded by ``max_concurrent_lines``) and
    merged back in the configured line order, so the result does not depend
    on which fetch finishes first. A failing line is logged and reported in
    ``ScanResult.failed_lines``; the other lines still contribute.

    Attributes:
        policy_store: Source of policy-line rows
        policy_lines: Lines to scan, in output order
    """

    def __init__(
        self,
        policy_store: PolicyStore,
        policy_lines: Sequence[str],
        max_concurrent_lines: int = 4,
    ):
        self.policy_store = policy_store
        self.policy_lines = list(policy_lines)
        self.max_concurrent_lines = max(1, max_concurrent_lines)

    async def scan(
        self,
        contacts: Sequence[ContactSummary],
        threshold: float,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ScanResult:
        """Match all contacts against every policy line.

        Args:
            contacts: Directory contacts
            threshold: Exclusive lower bound for name similarity
            cancel_token: Optional token; once cancelled, lines not yet
                fetched are skipped and reported in ``skipped_lines``

        Returns:
            ScanResult: Matches plus failed/skipped line bookkeeping
        """
        candidates = usable_contacts(contacts)
        semaphore = asyncio.Semaphore(self.max_concurrent_lines)

        async def scan_line(line: str) -> Tuple[str, str, List[Match]]:
            async with semaphore:
                if cancel_token is not None and cancel_token.cancelled:
                    return line, "skipped", []
                rows = await self._fetch_line(line)
                if rows is None:
                    return line, "failed", []
                return line, "ok", match_line(candidates, line, rows, threshold)

        outcomes = await asyncio.gather(*(scan_line(line) for line in self.policy_lines))

        result = ScanResult()
        for line, status, matches in outcomes:
            if status == "failed":
                result.failed_lines.append(line)
            elif status == "skipped":
                result.skipped_lines.append(line)
            else:
                result.matches.extend(matches)
                LOGGER.debug(
                    "Scanned policy line",
                    extra={"table": line, "matches": len(matches)},
                )

        result.cancelled = bool(result.skipped_lines)
        if result.cancelled:
            LOGGER.info(
                "Relationship scan cancelled",
                extra={"skipped_lines": ",".join(result.skipped_lines)},
            )
        return result

    async def scan_contact(
        self,
        contact: ContactSummary,
        threshold: float,
    ) -> ScanResult:
        """Collect every policy of a single contact across all lines."""
        result = ScanResult()
        for line in self.policy_lines:
            rows = await self._fetch_line(line)
            if rows is None:
                result.failed_lines.append(line)
                continue
            result.matches.extend(match_contact(contact, line, rows, threshold))
        return result

    async def _fetch_line(self, line: str) -> Optional[List[PolicyHolder]]:
        try:
            rows = await self.policy_store.list_policyholders(line)
        except Exception as e:
            LOGGER.warning(
                f"Error checking table {line}, skipping it",
                extra={"table": line, "error": str(e)},
            )
            return None
        return usable_rows(line, rows)
