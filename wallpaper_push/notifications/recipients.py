"""Recipient selection for shared wallpapers."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from wallpaper_push.notifications.contracts import SYSTEM_SENDER_ID, PairUser, Wallpaper

FALLBACK_SENDER_NAME = "Your partner"


@dataclass(frozen=True)
class RecipientSelection:
  """Who to notify for a wallpaper and how to name the sender."""

  recipients: list[PairUser]
  sender_first_name: str
  sender_name: str


def find_sender(wallpaper: Wallpaper, pair_users: Sequence[PairUser]) -> PairUser | None:
  return next((user for user in pair_users if user.id == wallpaper.sender_id), None)


def first_name(display_name: str | None) -> str:
  """Return the first whitespace-separated token of a display name, or the fallback."""
  tokens = (display_name or "").split()
  return tokens[0] if tokens else FALLBACK_SENDER_NAME


def select_recipients(wallpaper: Wallpaper, pair_users: Sequence[PairUser]) -> list[PairUser]:
  """Apply the wallpaper's `apply_to` policy to the pair's token holders."""
  candidates = [user for user in pair_users if user.fcm_token]

  if wallpaper.apply_to == "both":
    return candidates

  if wallpaper.apply_to == "partner":
    # A system-initiated wallpaper has no partner; everyone in the pair receives it.
    if wallpaper.sender_id == SYSTEM_SENDER_ID:
      return candidates
    return [user for user in candidates if user.id != wallpaper.sender_id]

  return []


def resolve_recipients(wallpaper: Wallpaper, pair_users: Sequence[PairUser]) -> RecipientSelection:
  """Compute the ordered recipient list and sender naming for a wallpaper."""
  sender = find_sender(wallpaper, pair_users)
  sender_name = (sender.display_name or "") if sender else ""
  return RecipientSelection(recipients=select_recipients(wallpaper, pair_users), sender_first_name=first_name(sender_name), sender_name=sender_name)
