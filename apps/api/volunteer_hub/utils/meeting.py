"""Video meeting details embedded in event descriptions by older clients.

Events store video_link, meeting_id and meeting_passcode in their own
columns. Descriptions saved by the legacy UI carry the same data as text
markers; these helpers lift the markers out and render them back for
calendar exports.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_VIDEO_LINK_RE = re.compile(r"Join Meeting: (https?://\S+)")
_MEETING_ID_RE = re.compile(r"Meeting ID: (\S+)")
_PASSCODE_RE = re.compile(r"Passcode: (\S+)")

_STRIP_PATTERNS = (
    re.compile(r"\n*Join Meeting: https?://\S+"),
    re.compile(r"\n*Meeting ID: \S+"),
    re.compile(r"\n*Passcode: \S+"),
)


@dataclass
class MeetingInfo:
    video_link: str | None = None
    meeting_id: str | None = None
    meeting_passcode: str | None = None

    def __bool__(self) -> bool:
        return bool(self.video_link or self.meeting_id or self.meeting_passcode)


def parse_meeting_info(description: str | None) -> MeetingInfo:
    """Extract meeting markers from a description."""
    if not description:
        return MeetingInfo()

    def _match(pattern: re.Pattern) -> str | None:
        found = pattern.search(description)
        return found.group(1) if found else None

    return MeetingInfo(
        video_link=_match(_VIDEO_LINK_RE),
        meeting_id=_match(_MEETING_ID_RE),
        meeting_passcode=_match(_PASSCODE_RE),
    )


def strip_meeting_info(description: str | None) -> str | None:
    """Remove meeting markers, leaving the human-written description."""
    if description is None:
        return None
    cleaned = description
    for pattern in _STRIP_PATTERNS:
        cleaned = pattern.sub("", cleaned, count=1)
    return cleaned.rstrip()


def append_meeting_info(description: str | None, info: MeetingInfo) -> str:
    """Render meeting details after the description (calendar exports)."""
    text = description or ""
    if not info.video_link:
        return text
    block = f"Join Meeting: {info.video_link}"
    if info.meeting_id:
        block += f"\nMeeting ID: {info.meeting_id}"
    if info.meeting_passcode:
        block += f"\nPasscode: {info.meeting_passcode}"
    return f"{text}\n\n{block}" if text else block
