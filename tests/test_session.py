"""Tests for transcription session lifecycle."""
import io

import numpy as np
import pytest

from fakes import FakeContext, FakeModel
from whisperwire.backends.base import RecognizerParams
from whisperwire.errors import ParameterError, ProcessingError, SessionOpenError
from whisperwire.session import TranscriptionSession


def _open(model=None, params=None):
    out = io.StringIO()
    model = model or FakeModel()
    session = TranscriptionSession.open(model, params or RecognizerParams(), out=out)
    return model, session, out


def test_open_applies_params_and_prints_system_info():
    params = RecognizerParams(language="de", beam_size=3)
    model, session, out = _open(params=params)

    assert model.contexts[0].params is params
    assert out.getvalue() == "\nfake-backend | model=tiny | cpu\n"
    session.close()


def test_each_session_gets_its_own_context():
    model = FakeModel()
    _, first, _ = _open(model)
    _, second, _ = _open(model)

    first.process(np.zeros(100, dtype=np.float32))

    assert len(model.contexts) == 2
    assert model.contexts[0].calls == [100]
    assert model.contexts[1].calls == []
    first.close()
    second.close()


def test_open_wraps_context_creation_failure():
    model = FakeModel()
    model.fail_new_context = RuntimeError("Model is closed")

    with pytest.raises(SessionOpenError, match="Model is closed"):
        _open(model)


def test_rejected_params_close_the_context():
    model = FakeModel(fail_params=ParameterError("beam_size must be at least 1"))

    with pytest.raises(ParameterError, match="beam_size"):
        _open(model)
    assert model.contexts[0].closed == 1


def test_unexpected_param_failure_becomes_parameter_error():
    model = FakeModel(fail_params=KeyError("language"))

    with pytest.raises(ParameterError):
        _open(model)
    assert model.contexts[0].closed == 1


def test_process_wraps_backend_errors():
    model = FakeModel(fail_process=RuntimeError("decoder blew up"))
    _, session, _ = _open(model)

    with pytest.raises(ProcessingError, match="decoder blew up") as excinfo:
        session.process(np.zeros(10, dtype=np.float32))
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_process_invokes_callback_per_segment():
    _, session, _ = _open()
    seen = []

    session.process(np.zeros(32, dtype=np.float32), seen.append)
    session.process(np.zeros(48, dtype=np.float32), seen.append)

    assert [segment.index for segment in seen] == [1, 2]


def test_segments_accumulate_across_process_calls():
    _, session, _ = _open()
    session.process(np.zeros(16, dtype=np.float32))
    session.process(np.zeros(8, dtype=np.float32))

    texts = [segment.text for segment in session.drain_segments()]

    assert texts == [" chunk of 16", " chunk of 8"]


def test_drain_twice_raises():
    _, session, _ = _open()
    session.drain_segments()

    with pytest.raises(RuntimeError, match="already drained"):
        session.drain_segments()


def test_process_after_drain_is_rejected():
    _, session, _ = _open()
    session.drain_segments()

    with pytest.raises(ProcessingError):
        session.process(np.zeros(4, dtype=np.float32))


def test_close_is_idempotent_and_blocks_processing():
    model, session, _ = _open()

    with session:
        pass
    session.close()

    assert model.contexts[0].closed == 1
    with pytest.raises(ProcessingError, match="closed"):
        session.process(np.zeros(4, dtype=np.float32))


def test_print_timings_reports_totals():
    _, session, out = _open()
    session.reset_timings()
    session.process(np.zeros(16000, dtype=np.float32))

    session.print_timings()

    assert "[INFO] timings: calls = 1, audio = 1.00s" in out.getvalue()
    assert "segments = 1" in out.getvalue()


def test_system_info_failure_closes_the_context(monkeypatch):
    model = FakeModel()

    def _broken_info(self):
        raise RuntimeError("hardware probe failed")

    monkeypatch.setattr(FakeContext, "system_info", _broken_info)

    with pytest.raises(SessionOpenError, match="hardware probe failed"):
        _open(model)
    assert model.contexts[0].closed == 1
