# ai_pulse/deps/services.py
from fastapi import Request

from ai_pulse.tally import TallyAggregator
from ai_pulse.vote_recorder import VoteRecorder


def get_vote_recorder(request: Request) -> VoteRecorder:
    """The recorder built once by create_app and kept on app.state."""
    return request.app.state.vote_recorder


def get_tally_aggregator(request: Request) -> TallyAggregator:
    return request.app.state.tally_aggregator
