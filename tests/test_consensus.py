import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from axionvera.consensus import (
    ConsensusEngine,
    Proposal,
    ProposalStatus,
    Vote,
    VoteType,
)
from axionvera.exceptions import ValidationError


def make_engine(required_votes=2, node_id="node-a"):
    return ConsensusEngine(node_id, required_votes, 5)


def expired_proposal(proposer="node-b"):
    proposal = Proposal.create(proposer, b"old", 2, 5)
    past = datetime.now(timezone.utc) - timedelta(minutes=10)
    return replace(proposal, created_at=past, expires_at=past + timedelta(minutes=1))


def test_proposal_create_sets_fields():
    proposal = Proposal.create("node-a", b"payload", 3, 5)
    assert proposal.proposer == "node-a"
    assert proposal.content == b"payload"
    assert proposal.required_votes == 3
    assert proposal.current_votes == 0
    assert proposal.status is ProposalStatus.ACTIVE
    assert proposal.expires_at - proposal.created_at == timedelta(minutes=5)
    assert proposal.can_vote()


def test_proposal_quorum_and_expiry():
    proposal = Proposal.create("node-a", b"", 2, 5)
    assert not proposal.has_quorum()
    proposal.current_votes = 2
    assert proposal.has_quorum()
    old = expired_proposal()
    assert old.is_expired()
    assert not old.can_vote()


def test_vote_with_trace_context_returns_new_vote():
    vote = Vote.create("p1", "node-b", VoteType.APPROVE, b"sig")
    traced = vote.with_trace_context("trace-1")
    assert traced.trace_context == "trace-1"
    assert vote.trace_context is None
    assert traced.voter == vote.voter


@pytest.mark.asyncio
async def test_create_proposal_stores_and_broadcasts():
    engine = make_engine()
    proposal = await engine.create_proposal(b"data")
    assert proposal.proposer == "node-a"
    broadcast = engine.proposal_queue.get_nowait()
    assert broadcast.id == proposal.id
    stored = await engine.get_proposal(proposal.id)
    assert stored.content == b"data"


@pytest.mark.asyncio
async def test_vote_unknown_proposal_raises():
    engine = make_engine()
    with pytest.raises(ValidationError):
        await engine.vote("missing", VoteType.APPROVE, b"sig")


@pytest.mark.asyncio
async def test_vote_twice_raises():
    engine = make_engine(required_votes=3)
    proposal = await engine.create_proposal(b"x")
    await engine.vote(proposal.id, VoteType.APPROVE, b"sig")
    with pytest.raises(ValidationError):
        await engine.vote(proposal.id, VoteType.APPROVE, b"sig")
    assert len(await engine.get_votes(proposal.id)) == 1


@pytest.mark.asyncio
async def test_single_approve_reaches_quorum():
    engine = make_engine(required_votes=1)
    proposal = await engine.create_proposal(b"x")
    await engine.vote(proposal.id, VoteType.APPROVE, b"sig")
    stored = await engine.get_proposal(proposal.id)
    assert stored.status is ProposalStatus.APPROVED
    assert stored.current_votes == 1
    sent = engine.vote_queue.get_nowait()
    assert sent.voter == "node-a"
    assert sent.vote_type is VoteType.APPROVE


@pytest.mark.parametrize("vote_type", [VoteType.REJECT, VoteType.ABSTAIN])
@pytest.mark.asyncio
async def test_non_approve_vote_rejects(vote_type):
    engine = make_engine(required_votes=1)
    proposal = await engine.create_proposal(b"x")
    await engine.vote(proposal.id, vote_type, b"sig")
    stored = await engine.get_proposal(proposal.id)
    assert stored.status is ProposalStatus.REJECTED


@pytest.mark.asyncio
async def test_process_votes_from_peers():
    engine = make_engine(required_votes=2)
    proposal = await engine.create_proposal(b"x")
    await engine.process_vote(Vote.create(proposal.id, "node-b", VoteType.APPROVE, b"s"))
    with pytest.raises(ValidationError):
        await engine.process_vote(Vote.create(proposal.id, "node-b", VoteType.APPROVE, b"s"))
    assert (await engine.get_proposal(proposal.id)).status is ProposalStatus.ACTIVE
    await engine.process_vote(Vote.create(proposal.id, "node-c", VoteType.APPROVE, b"s"))
    assert (await engine.get_proposal(proposal.id)).status is ProposalStatus.APPROVED
    with pytest.raises(ValidationError):
        await engine.process_vote(Vote.create(proposal.id, "node-d", VoteType.REJECT, b"s"))


@pytest.mark.asyncio
async def test_process_vote_unknown_proposal_raises():
    engine = make_engine()
    with pytest.raises(ValidationError):
        await engine.process_vote(Vote.create("nope", "node-b", VoteType.APPROVE, b"s"))


@pytest.mark.asyncio
async def test_process_proposal_ignores_known_id():
    engine = make_engine()
    proposal = Proposal.create("node-b", b"first", 2, 5)
    await engine.process_proposal(proposal)
    await engine.process_proposal(replace(proposal, content=b"second"))
    stored = await engine.get_proposal(proposal.id)
    assert stored.content == b"first"
    assert (await engine.get_stats()).total_proposals == 1


@pytest.mark.asyncio
async def test_get_proposal_returns_copy():
    engine = make_engine()
    proposal = await engine.create_proposal(b"x")
    copy = await engine.get_proposal(proposal.id)
    copy.current_votes = 99
    assert (await engine.get_proposal(proposal.id)).current_votes == 0


@pytest.mark.asyncio
async def test_missing_lookups():
    engine = make_engine()
    assert await engine.get_proposal("missing") is None
    assert await engine.get_votes("missing") == []


@pytest.mark.asyncio
async def test_cleanup_expired_proposals():
    engine = make_engine()
    old = expired_proposal()
    await engine.process_proposal(old)
    await engine.create_proposal(b"fresh")
    assert await engine.cleanup_expired_proposals() == 1
    assert (await engine.get_proposal(old.id)).status is ProposalStatus.EXPIRED
    assert await engine.cleanup_expired_proposals() == 0


@pytest.mark.asyncio
async def test_active_proposals_and_stats():
    engine = make_engine(required_votes=1)
    approved = await engine.create_proposal(b"a")
    await engine.vote(approved.id, VoteType.APPROVE, b"s")
    active = await engine.create_proposal(b"b")
    await engine.process_proposal(expired_proposal())
    await engine.cleanup_expired_proposals()

    assert [p.id for p in await engine.get_active_proposals()] == [active.id]
    stats = await engine.get_stats()
    assert stats.node_id == "node-a"
    assert stats.total_proposals == 3
    assert stats.active_proposals == 1
    assert stats.approved_proposals == 1
    assert stats.rejected_proposals == 0
    assert stats.expired_proposals == 1
    assert stats.total_votes == 1
    assert stats.required_votes == 1


@pytest.mark.asyncio
async def test_maintenance_expires_proposals():
    engine = make_engine()
    old = expired_proposal()
    await engine.process_proposal(old)
    task = await engine.start_maintenance(0.01)
    try:
        await asyncio.sleep(0.05)
        assert (await engine.get_proposal(old.id)).status is ProposalStatus.EXPIRED
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task