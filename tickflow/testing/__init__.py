from tickflow.testing.fakes import ScriptedSink, ScriptedSource, Tick, settle, ticks

__all__ = ["ScriptedSink", "ScriptedSource", "Tick", "settle", "ticks"]
