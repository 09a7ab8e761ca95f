"""Tests for user name lookup."""

import os
import pwd

from pyps.users import resolve_username


def test_resolve_current_user():
    expected = pwd.getpwuid(os.getuid()).pw_name
    assert resolve_username(os.getuid()) == expected


def test_unknown_uid_falls_back_to_number():
    uid = 2**31 - 7
    assert resolve_username(uid) == str(uid)
