"""
Inbound message records.

Messages are written by a single processor and updated rarely, so updates
are plain read-then-write without optimistic concurrency.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from pmc_deposit.context import PMCContext
from pmc_deposit.exceptions import RecordNotFoundError
from pmc_deposit.kernel.models.message import Message, MessageStatus
from pmc_deposit.logging_config import get_logger

logger = get_logger(__name__)

MESSAGE_MODULE = "PMC"
INBOUND_EMAIL_TYPE = "inbound_email"
INBOUND_EMAIL_SCHEMA = "inbound_email"


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def inbound_email_results(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Envelope and header fields pulled out of an inbound email payload."""
    envelope = payload.get("envelope") or {}
    headers = payload.get("headers") or {}
    now = datetime.now(timezone.utc).isoformat()

    results: Dict[str, Any] = {
        "$schema": INBOUND_EMAIL_SCHEMA,
        "from": envelope.get("from") or headers.get("from") or "unknown",
        "to": _first(envelope.get("to")) or headers.get("to") or "unknown",
        "subject": headers.get("subject") or "no subject",
        "receivedAt": headers.get("date") or envelope.get("date") or now,
        "plain": payload.get("plain"),
        "html": payload.get("html"),
    }
    if headers:
        results["headers"] = {k: headers.get(k) for k in ("from", "to", "subject", "date")}
    if envelope:
        results["envelope"] = {k: envelope.get(k) for k in ("from", "to")}
    return results


async def create_message_record(
    ctx: PMCContext,
    payload: Dict[str, Any],
    results: Optional[Dict[str, Any]] = None,
) -> uuid.UUID:
    """Store an inbound email as a PENDING message and return its id."""
    structured = inbound_email_results(payload)
    final_results = {**structured, **(results or {}), "$schema": INBOUND_EMAIL_SCHEMA}

    async with ctx.session_maker() as session:
        async with session.begin():
            message = Message(
                module=MESSAGE_MODULE,
                type=INBOUND_EMAIL_TYPE,
                status=MessageStatus.PENDING.value,
                payload=payload,
                results=final_results,
            )
            session.add(message)

    logger.info(
        "Inbound message recorded",
        extra={"message_id": str(message.id), "subject": structured["subject"]},
    )
    return message.id


async def update_message_status(
    ctx: PMCContext,
    message_id: uuid.UUID,
    status: MessageStatus,
    results: Optional[Dict[str, Any]] = None,
) -> Message:
    """Set a message's status and merge ``results`` into its stored results."""
    async with ctx.session_maker() as session:
        async with session.begin():
            message = await session.get(Message, message_id)
            if message is None:
                raise RecordNotFoundError("Message not found", {"messageId": str(message_id)})
            message.status = MessageStatus(status).value
            message.results = {**(message.results or {}), **(results or {})}
    return message
