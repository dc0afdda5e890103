"""
Core package for the answering-machine detection pipeline.

This package rebuilds playable WAV files from captured telephony payloads and
their timing ledgers, transcribes them with Google Speech-to-Text, and flags
recordings that look like an answering-machine greeting.  The batch
orchestrator in :mod:`voicemail_pipeline.tasks` drives the whole flow for a
folder of captures.
"""
