"""
HomeSphere smart-home simulation package.

Organises simulated devices into rooms of a household, dispatches validated
commands to them, replays automation scenes with per-action isolation, and
meters device energy consumption over arbitrary time windows.

CHANGELOG:
- 2026-10-05: Initial creation (STORY-001)

TODO:
- None
"""
