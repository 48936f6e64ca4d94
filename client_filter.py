# client_filter.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Optional


DEFAULT_VALID_CLIENTS = r"^(?:Skype|ZOOM VoiceEngine|WEBRTC VoiceEngine|Google Chrome(?: input)?)$"
DEFAULT_PERSISTENT_SPEAKER_USERS = r"^(?:Google Chrome|ZOOM VoiceEngine)$"
DEFAULT_NAME_MAP: Dict[str, str] = {"Google Chrome input": "Google Chrome"}


@dataclass(frozen=True)
class ClientFilter:
    """
    Which applications count as callers.

    WEBRTC VoiceEngine is Google Meet/Hangouts. Chrome and Zoom sometimes keep the
    speaker open outside a call, so they are matched as persistent speaker users too.
    """

    valid: re.Pattern[str] = re.compile(DEFAULT_VALID_CLIENTS)
    persistent_speaker_users: Optional[re.Pattern[str]] = re.compile(DEFAULT_PERSISTENT_SPEAKER_USERS)
    name_map: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_NAME_MAP))

    def approve(self, label: Optional[str]) -> bool:
        if not label:
            return False
        return self.valid.search(label) is not None

    def canonical(self, label: str) -> str:
        return self.name_map.get(label, label)

    def is_persistent_speaker_user(self, label: str) -> bool:
        if self.persistent_speaker_users is None:
            return False
        return self.persistent_speaker_users.search(label) is not None
