"""Proposal and voting engine shared by network nodes."""

from __future__ import annotations

import asyncio
import enum
import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone

from .exceptions import ValidationError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VoteType(enum.Enum):
    APPROVE = "Approve"
    REJECT = "Reject"
    ABSTAIN = "Abstain"


class ProposalStatus(enum.Enum):
    ACTIVE = "Active"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    EXPIRED = "Expired"


@dataclass
class Proposal:
    """A proposal awaiting votes from the network."""

    id: str
    proposer: str
    content: bytes
    created_at: datetime
    expires_at: datetime
    required_votes: int
    current_votes: int = 0
    status: ProposalStatus = ProposalStatus.ACTIVE

    @classmethod
    def create(
        cls, proposer: str, content: bytes, required_votes: int, ttl_minutes: int
    ) -> Proposal:
        now = _utcnow()
        return cls(
            id=str(uuid.uuid4()),
            proposer=proposer,
            content=bytes(content),
            created_at=now,
            expires_at=now + timedelta(minutes=ttl_minutes),
            required_votes=required_votes,
        )

    def is_expired(self) -> bool:
        return _utcnow() > self.expires_at

    def can_vote(self) -> bool:
        return self.status is ProposalStatus.ACTIVE and not self.is_expired()

    def has_quorum(self) -> bool:
        return self.current_votes >= self.required_votes


@dataclass(frozen=True)
class Vote:
    """A single node's vote on a proposal."""

    proposal_id: str
    voter: str
    vote_type: VoteType
    timestamp: datetime
    signature: bytes
    trace_context: str | None = None

    @classmethod
    def create(
        cls, proposal_id: str, voter: str, vote_type: VoteType, signature: bytes
    ) -> Vote:
        return cls(
            proposal_id=proposal_id,
            voter=voter,
            vote_type=vote_type,
            timestamp=_utcnow(),
            signature=bytes(signature),
        )

    def with_trace_context(self, trace_context: str) -> Vote:
        return replace(self, trace_context=trace_context)


@dataclass(frozen=True)
class ConsensusStats:
    node_id: str
    total_proposals: int
    active_proposals: int
    approved_proposals: int
    rejected_proposals: int
    expired_proposals: int
    total_votes: int
    required_votes: int


@dataclass
class ConsensusEngine:
    """Tracks proposals and votes; outgoing messages go onto the two queues."""

    node_id: str
    required_votes: int
    proposal_ttl_minutes: int
    vote_queue: asyncio.Queue = field(default_factory=asyncio.Queue, repr=False)
    proposal_queue: asyncio.Queue = field(default_factory=asyncio.Queue, repr=False)
    _proposals: dict[str, Proposal] = field(default_factory=dict, repr=False)
    _votes: dict[str, list[Vote]] = field(default_factory=dict, repr=False)

    async def create_proposal(self, content: bytes) -> Proposal:
        proposal = Proposal.create(
            self.node_id, content, self.required_votes, self.proposal_ttl_minutes
        )
        logger.info(
            "Creating proposal %s with %d required votes", proposal.id, proposal.required_votes
        )
        self._proposals[proposal.id] = proposal
        self.proposal_queue.put_nowait(replace(proposal))
        logger.info("Proposal %s created and broadcasted", proposal.id)
        return replace(proposal)

    async def vote(self, proposal_id: str, vote_type: VoteType, signature: bytes) -> None:
        """Cast this node's vote on a proposal and broadcast it."""
        logger.info("Casting vote on proposal: %s", proposal_id)
        proposal = self._proposals.get(proposal_id)
        if proposal is None:
            raise ValidationError(f"Proposal {proposal_id} not found")
        if not proposal.can_vote():
            raise ValidationError(f"Proposal {proposal_id} is not active")
        if self._has_voted(proposal_id, self.node_id):
            raise ValidationError(f"Already voted on proposal {proposal_id}")

        vote = Vote.create(proposal_id, self.node_id, vote_type, signature)
        self._record_vote(vote)
        self.vote_queue.put_nowait(vote)
        logger.info("Vote cast successfully on proposal: %s", proposal_id)

    async def process_vote(self, vote: Vote) -> None:
        """Accept a vote received from another node."""
        logger.info("Processing vote from %s for proposal: %s", vote.voter, vote.proposal_id)
        if vote.trace_context is not None:
            logger.debug("Vote carries trace context: %s", vote.trace_context)
        proposal = self._proposals.get(vote.proposal_id)
        if proposal is None:
            raise ValidationError(f"Unknown proposal: {vote.proposal_id}")
        if not proposal.can_vote():
            raise ValidationError(f"Proposal {vote.proposal_id} is not active")
        if self._has_voted(vote.proposal_id, vote.voter):
            raise ValidationError(f"Duplicate vote from {vote.voter}")
        self._record_vote(vote)
        logger.info("Vote processed successfully for proposal: %s", vote.proposal_id)

    async def process_proposal(self, proposal: Proposal) -> None:
        """Store a proposal received from another node; known ids are ignored."""
        if proposal.id in self._proposals:
            logger.debug("Proposal %s already exists, ignoring", proposal.id)
            return
        self._proposals[proposal.id] = replace(proposal)
        logger.info("Proposal %s stored successfully", proposal.id)

    def _has_voted(self, proposal_id: str, voter: str) -> bool:
        return any(v.voter == voter for v in self._votes.get(proposal_id, ()))

    def _record_vote(self, vote: Vote) -> None:
        self._votes.setdefault(vote.proposal_id, []).append(vote)
        proposal = self._proposals.get(vote.proposal_id)
        if proposal is not None:
            proposal.current_votes += 1
            if proposal.has_quorum():
                self._finalize(proposal)

    def _finalize(self, proposal: Proposal) -> None:
        counts = Counter(v.vote_type for v in self._votes.get(proposal.id, ()))
        approve = counts[VoteType.APPROVE]
        reject = counts[VoteType.REJECT]
        proposal.status = (
            ProposalStatus.APPROVED if approve > reject else ProposalStatus.REJECTED
        )
        logger.info(
            "Proposal %s finalized with status: %s (A:%d, R:%d, Abstain:%d)",
            proposal.id,
            proposal.status.value,
            approve,
            reject,
            counts[VoteType.ABSTAIN],
        )

    def _expire_proposals(self) -> int:
        expired = [
            p
            for p in self._proposals.values()
            if p.status is ProposalStatus.ACTIVE and p.is_expired()
        ]
        for proposal in expired:
            proposal.status = ProposalStatus.EXPIRED
            logger.info("Proposal %s marked as expired", proposal.id)
        return len(expired)

    async def cleanup_expired_proposals(self) -> int:
        """Mark expired active proposals; return how many were marked."""
        count = self._expire_proposals()
        if count:
            logger.info("Cleaned up %d expired proposals", count)
        return count

    async def get_proposal(self, proposal_id: str) -> Proposal | None:
        proposal = self._proposals.get(proposal_id)
        return None if proposal is None else replace(proposal)

    async def get_votes(self, proposal_id: str) -> list[Vote]:
        return list(self._votes.get(proposal_id, ()))

    async def get_active_proposals(self) -> list[Proposal]:
        return [replace(p) for p in self._proposals.values() if p.can_vote()]

    async def get_stats(self) -> ConsensusStats:
        proposals = list(self._proposals.values())
        statuses = Counter(p.status for p in proposals)
        return ConsensusStats(
            node_id=self.node_id,
            total_proposals=len(proposals),
            active_proposals=sum(1 for p in proposals if p.can_vote()),
            approved_proposals=statuses[ProposalStatus.APPROVED],
            rejected_proposals=statuses[ProposalStatus.REJECTED],
            expired_proposals=statuses[ProposalStatus.EXPIRED],
            total_votes=sum(len(v) for v in self._votes.values()),
            required_votes=self.required_votes,
        )

    async def start_maintenance(self, interval_seconds: float = 60.0) -> asyncio.Task:
        """Start a background task that expires stale proposals every interval."""

        async def run() -> None:
            while True:
                count = self._expire_proposals()
                if count:
                    logger.info("Maintenance: %d proposals expired", count)
                await asyncio.sleep(interval_seconds)

        return asyncio.create_task(run())