"""Pytest plugin and step runtime for behaviour-driven scenarios.

The `pytest_world` package provides the engine behind scenario steps
and integrates it with pytest through a per-test `world` fixture.

Key features:
- `{path}` references resolved against a thread-safe scenario store;
- dynamic invocation of operations with overload resolution;
- uniform handling of futures, coroutines and lazy producers;
- table assertions with exact, at-least and excludes policies;
- named asynchronous tasks awaited with a timeout.
"""
