import logging
from dataclasses import dataclass, field
from typing import List, Sequence

logger = logging.getLogger(__name__)


@dataclass
class BroadcastReport:
    """What a broadcast scheduled; delivery itself happens in the background"""
    scheduled: List[int] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class Broadcaster:
    """Fan a payload out to many chats without waiting for delivery.

    Each recipient gets its own background send through ``sender.spawn``, so
    a chat that blocked the bot or no longer exists only fails its own send.
    Stored ids that are not valid integers are skipped and reported.
    """

    def __init__(self, sender):
        self.sender = sender

    def broadcast(self, recipients: Sequence[str], payload: str) -> BroadcastReport:
        report = BroadcastReport()
        for raw_id in recipients:
            try:
                chat_id = int(raw_id)
            except (TypeError, ValueError):
                logger.warning(f"⚠️ Skipping malformed subscriber id {raw_id!r}")
                report.skipped.append(raw_id)
                continue
            self.sender.spawn(chat_id, payload)
            report.scheduled.append(chat_id)

        logger.info(
            f"📤 Broadcast scheduled to {len(report.scheduled)} chats"
            + (f", skipped {len(report.skipped)} malformed ids" if report.skipped else "")
        )
        return report
