"""Tests for validating and appending votes."""

import httpx
import pytest
from sqlalchemy import select, func, text

from ai_pulse.errors import ValidationError, PersistenceError
from ai_pulse.models.vote_model import Vote, VoteType
from ai_pulse.utils.geo import GeoResolver
from ai_pulse.vote_recorder import VoteRecorder, parse_vote_type
from conftest import country_handler, geo_client, run_with_db

CURSOR = 8


def make_recorder(session_factory, handler=None):
    resolver = GeoResolver(geo_client(handler or country_handler("US")), "http://geo.test/json")
    return VoteRecorder(session_factory, resolver)


async def count_votes(session_factory):
    async with session_factory() as session:
        return await session.scalar(select(func.count(Vote.id)))


class TestParseVoteType:
    def test_accepts_both_values(self):
        assert parse_vote_type("upvote") is VoteType.UPVOTE
        assert parse_vote_type(VoteType.DOWNVOTE) is VoteType.DOWNVOTE

    @pytest.mark.parametrize("value", ["UPVOTE", "up", "", "sideways"])
    def test_rejects_anything_else(self, value):
        with pytest.raises(ValidationError, match="Invalid vote type"):
            parse_vote_type(value)


class TestRecord:
    def test_upvote_from_public_origin(self, db_url):
        async def scenario(session_factory):
            vote = await make_recorder(session_factory).record(CURSOR, "upvote", "8.8.8.8")
            return vote, await count_votes(session_factory)

        vote, total = run_with_db(db_url, scenario)
        assert total == 1
        assert vote.id is not None
        assert vote.created_at is not None
        assert vote.item_id == CURSOR
        assert vote.vote_type is VoteType.UPVOTE
        assert vote.country == "US"
        assert vote.ip_address == "8.8.8.8"

    def test_identical_submissions_append_distinct_rows(self, db_url):
        async def scenario(session_factory):
            recorder = make_recorder(session_factory)
            first = await recorder.record(CURSOR, "downvote", "8.8.8.8", "ua", "fp")
            second = await recorder.record(CURSOR, "downvote", "8.8.8.8", "ua", "fp")
            return first, second, await count_votes(session_factory)

        first, second, total = run_with_db(db_url, scenario)
        assert first.id != second.id
        assert total == 2

    def test_client_metadata_is_stored(self, db_url):
        async def scenario(session_factory):
            recorder = make_recorder(session_factory)
            long_ua = "Mozilla/5.0 " + "x" * 600
            return (
                await recorder.record(1, "upvote", "8.8.8.8", long_ua, "  abc123  "),
                await recorder.record(1, "upvote", "8.8.8.8", None, "   "),
            )

        with_meta, without_meta = run_with_db(db_url, scenario)
        assert with_meta.user_agent.startswith("Mozilla/5.0")
        assert len(with_meta.user_agent) == 512
        assert with_meta.fingerprint == "abc123"
        assert without_meta.user_agent is None
        assert without_meta.fingerprint is None

    def test_unreachable_geo_still_records_with_null_country(self, db_url):
        def unreachable(request):
            raise httpx.ConnectError("down", request=request)

        async def scenario(session_factory):
            vote = await make_recorder(session_factory, unreachable).record(2, "upvote", "8.8.8.8")
            return vote, await count_votes(session_factory)

        vote, total = run_with_db(db_url, scenario)
        assert total == 1
        assert vote.country is None

    def test_overlong_origin_is_truncated_to_column_size(self, db_url):
        origin = "203.0.113.7" + "x" * 200
        handler = lambda request: httpx.Response(200, json={"status": "fail"})

        async def scenario(session_factory):
            return await make_recorder(session_factory, handler).record(CURSOR, "upvote", origin)

        vote = run_with_db(db_url, scenario)
        assert vote.ip_address == origin[:64]
        assert vote.country == "Unknown"

    def test_ambiguous_geo_records_unknown(self, db_url):
        handler = lambda request: httpx.Response(200, text="not json")

        async def scenario(session_factory):
            return await make_recorder(session_factory, handler).record(2, "upvote", "8.8.8.8")

        assert run_with_db(db_url, scenario).country == "Unknown"


class TestRejected:
    def must_not_lookup(self, request):
        raise AssertionError("geo lookup must not happen for rejected votes")

    def test_unknown_item_is_rejected_without_a_row(self, db_url):
        async def scenario(session_factory):
            with pytest.raises(ValidationError, match="does not exist"):
                await make_recorder(session_factory, self.must_not_lookup).record(999, "upvote", "8.8.8.8")
            return await count_votes(session_factory)

        assert run_with_db(db_url, scenario) == 0

    def test_bad_vote_type_is_rejected_without_a_row(self, db_url):
        async def scenario(session_factory):
            with pytest.raises(ValidationError):
                await make_recorder(session_factory, self.must_not_lookup).record(CURSOR, "meh", "8.8.8.8")
            return await count_votes(session_factory)

        assert run_with_db(db_url, scenario) == 0

    @pytest.mark.parametrize("item_id", [0, -1, 2**31, 2**63])
    def test_item_id_outside_storage_range_is_rejected(self, db_url, item_id):
        async def scenario(session_factory):
            with pytest.raises(ValidationError, match="does not exist"):
                await make_recorder(session_factory, self.must_not_lookup).record(item_id, "upvote", "8.8.8.8")
            return await count_votes(session_factory)

        assert run_with_db(db_url, scenario) == 0


class TestPersistenceFailures:
    def test_unavailable_storage(self, broken_db_url):
        async def scenario(session_factory):
            with pytest.raises(PersistenceError) as exc_info:
                await make_recorder(session_factory).record(CURSOR, "upvote", "8.8.8.8")
            return exc_info.value

        err = run_with_db(broken_db_url, scenario, seed=False)
        assert err.write is True
        assert "nothing was recorded" in str(err)

    def test_failed_insert_leaves_no_vote(self, db_url):
        async def scenario(session_factory):
            # Break only the insert: the item check still succeeds
            async with session_factory() as session:
                await session.execute(text("ALTER TABLE votes RENAME TO votes_moved"))
                await session.commit()

            with pytest.raises(PersistenceError):
                await make_recorder(session_factory).record(CURSOR, "upvote", "8.8.8.8")

            async with session_factory() as session:
                return await session.scalar(text("SELECT COUNT(*) FROM votes_moved"))

        assert run_with_db(db_url, scenario) == 0
