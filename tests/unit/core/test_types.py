from __future__ import annotations

import pytest
from pydantic import ValidationError

from tickflow.core.exceptions import (
    ChannelClosedError,
    PipelineConfigError,
    SinkError,
    SourceError,
    TickflowError,
)
from tickflow.testing import Tick


def test_messages_are_frozen() -> None:
    tick = Tick(seq=1)
    with pytest.raises(ValidationError):
        tick.seq = 2  # type: ignore[misc]


def test_messages_copy_without_touching_original() -> None:
    tick = Tick(seq=1, symbol="AAPL")
    copy = tick.model_copy(update={"seq": 2})
    assert copy.seq == 2
    assert copy.symbol == "AAPL"
    assert tick.seq == 1


def test_error_hierarchy() -> None:
    assert issubclass(ChannelClosedError, TickflowError)
    assert issubclass(SourceError, TickflowError)
    assert issubclass(PipelineConfigError, ValueError)


def test_error_messages() -> None:
    assert str(ChannelClosedError("receiver gone")) == "Channel closed: receiver gone"
    assert str(SourceError()) == "Source failed"
    err = SinkError("postgres", "boom")
    assert err.sink_name == "postgres"
    assert str(err) == "Sink 'postgres' failed: boom"
