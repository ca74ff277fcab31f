"""
Session module - Presentation-side game flow.

This module contains:
- Countdown: Timed label sequence before the start
- CueScheduler: Sound cues for countdown, gallop rhythm and modes
- GameSession: Setup -> countdown -> race -> results sequencing
"""

from derbynet.session.countdown import Countdown
from derbynet.session.cues import CueScheduler, SoundCue
from derbynet.session.game import GameSession, GamePhase, SessionConfig, SessionFrame

__all__ = [
    "Countdown",
    "CueScheduler",
    "SoundCue",
    "GameSession",
    "GamePhase",
    "SessionConfig",
    "SessionFrame",
]
