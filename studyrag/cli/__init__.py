"""Command-line interface for the studyrag document store.

``python -m studyrag.cli <command>`` with one of ``ingest``, ``query``,
``list``, ``delete`` or ``usage``.
"""
