# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Direct-message endpoints.

Conversations are only ever read from the caller's side: both queries are
pinned to ``current_user`` as sender or receiver.  Deleting is reserved for
the sender.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from database import get_db
from core.permissions import ensure_owner, get_or_404
from core.response import api_response, serialize, serialize_all
from core.security import get_current_user
from models.message import Message
from models.user import User
from messages.schemas import ConversationSummary, MessageCreate, MessageResponse

router = APIRouter(prefix="/messages", tags=["messages"])


def _between(a: int, b: int):
    """Filter matching messages exchanged between users *a* and *b*, either direction."""
    return or_(
        and_(Message.sender_id == a, Message.receiver_id == b),
        and_(Message.sender_id == b, Message.receiver_id == a),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def send_message(
    body: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    get_or_404(db, User, body.receiver_id, "Receiver not found")

    if body.receiver_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot send a message to yourself")

    message = Message(sender_id=current_user.id, receiver_id=body.receiver_id, message=body.message)
    db.add(message)
    db.commit()
    db.refresh(message)
    return api_response(status.HTTP_201_CREATED, serialize(MessageResponse, message), "Message sent successfully")


@router.get("/conversations")
def list_conversations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """One entry per conversation partner with the latest message, most recent first."""
    me = current_user.id
    messages = (
        db.query(Message)
        .filter(or_(Message.sender_id == me, Message.receiver_id == me))
        .order_by(Message.created_at.desc(), Message.id.desc())
        .all()
    )

    latest = {}
    for message in messages:
        partner_id = message.receiver_id if message.sender_id == me else message.sender_id
        latest.setdefault(partner_id, message)

    partners = {user.id: user for user in db.query(User).filter(User.id.in_(list(latest))).all()} if latest else {}
    conversations = [
        {"user": partners[partner_id], "latest_message": message}
        for partner_id, message in latest.items()
        if partner_id in partners
    ]
    return api_response(
        status.HTTP_200_OK,
        serialize_all(ConversationSummary, conversations),
        "All conversations fetched successfully",
    )


@router.get("/conversation/{user_id}")
def get_conversation(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Every message between the caller and *user_id*, oldest first."""
    get_or_404(db, User, user_id, "User not found")

    messages = (
        db.query(Message)
        .filter(_between(current_user.id, user_id))
        .order_by(Message.created_at.asc(), Message.id.asc())
        .all()
    )
    return api_response(status.HTTP_200_OK, serialize_all(MessageResponse, messages), "Conversation fetched successfully")


@router.delete("/{message_id}")
def delete_message(
    message_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    message = get_or_404(db, Message, message_id, "Message not found")
    ensure_owner(message.sender_id, current_user, "You cannot delete this message")

    db.delete(message)
    db.commit()
    return api_response(status.HTTP_200_OK, {}, "Message deleted successfully")
