from __future__ import annotations

import pytest

from wallpaper_push.notifications.contracts import SYSTEM_SENDER_ID, PairUser
from wallpaper_push.notifications.recipients import FALLBACK_SENDER_NAME, first_name, resolve_recipients


def test_both_notifies_every_token_holder_including_sender(make_wallpaper, sender, partner):
  selection = resolve_recipients(make_wallpaper(apply_to="both"), [sender, partner])

  assert [user.id for user in selection.recipients] == [sender.id, partner.id]


def test_partner_excludes_the_sender(make_wallpaper, sender, partner):
  selection = resolve_recipients(make_wallpaper(apply_to="partner"), [sender, partner])

  assert selection.recipients == [partner]


def test_partner_from_system_sender_notifies_everyone(make_wallpaper, sender, partner):
  selection = resolve_recipients(make_wallpaper(apply_to="partner", sender_id=SYSTEM_SENDER_ID), [sender, partner])

  assert selection.recipients == [sender, partner]
  assert selection.sender_first_name == FALLBACK_SENDER_NAME
  assert selection.sender_name == ""


@pytest.mark.parametrize("apply_to", [None, "", "self", "BOTH"])
def test_unknown_apply_to_yields_no_recipients(make_wallpaper, sender, partner, apply_to):
  selection = resolve_recipients(make_wallpaper(apply_to=apply_to), [sender, partner])

  assert selection.recipients == []


def test_users_without_tokens_are_never_selected(make_wallpaper, sender, partner):
  silent = PairUser(id="33333333-3333-3333-3333-333333333333", fcm_token=None, display_name="Grace", pair_id=partner.pair_id)
  blank = PairUser(id="44444444-4444-4444-4444-444444444444", fcm_token="", pair_id=partner.pair_id)

  selection = resolve_recipients(make_wallpaper(apply_to="both"), [sender, silent, partner, blank])

  assert selection.recipients == [sender, partner]


def test_empty_and_crowded_pairs_are_tolerated(make_wallpaper, sender):
  assert resolve_recipients(make_wallpaper(apply_to="both"), []).recipients == []

  crowd = [PairUser(id=f"user-{index}", fcm_token=f"token-{index}", pair_id="pair-1") for index in range(5)]
  selection = resolve_recipients(make_wallpaper(apply_to="partner"), [sender, *crowd])
  assert selection.recipients == crowd


def test_sender_names_come_from_the_sender_record(make_wallpaper, sender, partner):
  selection = resolve_recipients(make_wallpaper(), [partner, sender])

  assert selection.sender_first_name == "Ada"
  assert selection.sender_name == "Ada Lovelace"


def test_sender_without_token_row_falls_back(make_wallpaper, partner):
  selection = resolve_recipients(make_wallpaper(), [partner])

  assert selection.sender_first_name == "Your partner"
  assert selection.recipients == [partner]


@pytest.mark.parametrize(
  ("display_name", "expected"),
  [("Ada Lovelace", "Ada"), ("  Ada   Lovelace ", "Ada"), ("Ada", "Ada"), ("", "Your partner"), ("   ", "Your partner"), (None, "Your partner")],
)
def test_first_name(display_name, expected):
  assert first_name(display_name) == expected
