"""
Unit tests for the participant roster.
"""

import unittest
from unittest.mock import Mock

from py2teamspeak.core.command_driver import CommandResult, CommandStatus
from py2teamspeak.core.errors import ProtocolError
from py2teamspeak.core.message_parser import parse_line
from py2teamspeak.services.roster_service import RosterStore


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


ROWS = [
    {'clid': '7', 'cid': '1', 'client_nickname': 'Jeff'},
    {'clid': '9', 'cid': '1', 'client_nickname': 'Bob'},
]


class TestClientList(unittest.TestCase):
    """Test full refreshes from clientlist rows."""

    def setUp(self):
        self.clock = FakeClock()
        self.roster = RosterStore(clock=self.clock)

    def test_upsert_new_participants(self):
        self.roster.apply_client_list(ROWS)

        self.assertEqual(len(self.roster), 2)
        jeff = self.roster.get('7')
        self.assertEqual(jeff.nickname, 'Jeff')
        self.assertEqual(jeff.channel_id, '1')
        self.assertFalse(jeff.is_talking)
        self.assertEqual(jeff.last_activity, 1000.0)

    def test_refresh_keeps_talk_flags(self):
        self.roster.apply_client_list(ROWS)
        self.roster.apply_talk_event('7', talking=True, whispering=True)

        self.clock.now = 2000.0
        self.roster.apply_client_list([{'clid': '7', 'client_nickname': '#61 Jeff'}, ROWS[1]])

        jeff = self.roster.get('7')
        self.assertEqual(jeff.nickname, '#61 Jeff')
        self.assertTrue(jeff.is_talking)
        self.assertTrue(jeff.is_whispering)
        self.assertEqual(jeff.last_activity, 2000.0)
        self.assertEqual(jeff.channel_id, '1')

    def test_complete_list_prunes_missing_ids(self):
        self.roster.apply_client_list(ROWS)
        self.roster.apply_client_list([ROWS[0]], complete=True)
        self.assertIn('7', self.roster)
        self.assertNotIn('9', self.roster)

    def test_partial_list_only_upserts(self):
        self.roster.apply_client_list(ROWS)
        self.roster.apply_client_list([{'clid': '12', 'client_nickname': 'Carol'}], complete=False)
        self.assertEqual(len(self.roster), 3)

    def test_rows_without_clid_are_ignored(self):
        self.roster.apply_client_list([{'client_nickname': 'ghost'}, ROWS[0]])
        self.assertEqual(len(self.roster), 1)

    def test_refresh_full_uses_driver(self):
        driver = Mock()
        driver.execute.return_value = CommandResult("clientlist", CommandStatus.OK, list(ROWS), 0)

        result = self.roster.refresh_full(driver)

        driver.execute.assert_called_once_with("clientlist")
        self.assertTrue(result.ok)
        self.assertEqual(len(self.roster), 2)

    def test_refresh_full_pending_does_not_prune(self):
        self.roster.apply_client_list(ROWS)
        driver = Mock()
        driver.execute.return_value = CommandResult("clientlist", CommandStatus.PENDING, [ROWS[0]])

        self.roster.refresh_full(driver)
        self.assertEqual(len(self.roster), 2)


class TestIncrementalEvents(unittest.TestCase):
    """Test talk, move and leave events."""

    def setUp(self):
        self.clock = FakeClock()
        self.roster = RosterStore(clock=self.clock)
        self.roster.apply_client_list(ROWS)

    def test_talk_event_updates_known_participant(self):
        self.clock.now = 1500.0
        self.assertTrue(self.roster.apply_talk_event('9', talking=True, whispering=False))

        bob = self.roster.get('9')
        self.assertTrue(bob.is_talking)
        self.assertFalse(bob.is_whispering)
        self.assertEqual(bob.last_activity, 1500.0)

    def test_talk_event_for_unknown_id_is_ignored(self):
        self.assertFalse(self.roster.apply_talk_event('42', talking=True, whispering=False))
        self.assertNotIn('42', self.roster)

    def test_move_event(self):
        self.assertTrue(self.roster.apply_move_event('9', '5'))
        self.assertEqual(self.roster.get('9').channel_id, '5')
        self.assertFalse(self.roster.apply_move_event('42', '5'))

    def test_remove(self):
        self.assertTrue(self.roster.remove('9'))
        self.assertFalse(self.roster.remove('9'))
        self.assertIsNone(self.roster.get('9'))

    def test_snapshot_is_a_copy(self):
        snapshot = self.roster.snapshot()
        snapshot[0].is_talking = True
        self.assertFalse(any(record.is_talking for record in self.roster.snapshot()))


class TestApplyNotification(unittest.TestCase):
    """Test routing of parsed notification lines."""

    def setUp(self):
        self.roster = RosterStore(clock=FakeClock())
        self.roster.apply_client_list(ROWS)

    def apply(self, line):
        return self.roster.apply_notification(parse_line(line))

    def test_talk_status_change(self):
        refresh = self.apply("notifytalkstatuschange schandlerid=1 status=1 isreceivedwhisper=1 clid=9")
        self.assertFalse(refresh)
        bob = self.roster.get('9')
        self.assertTrue(bob.is_talking)
        self.assertTrue(bob.is_whispering)

        self.apply("notifytalkstatuschange schandlerid=1 status=0 isreceivedwhisper=0 clid=9")
        self.assertFalse(self.roster.get('9').is_talking)

    def test_talk_status_without_whisper_flag(self):
        self.apply("notifytalkstatuschange schandlerid=1 status=1 clid=7")
        self.assertTrue(self.roster.get('7').is_talking)
        self.assertFalse(self.roster.get('7').is_whispering)

    def test_talk_status_missing_fields(self):
        with self.assertRaises(ProtocolError):
            self.apply("notifytalkstatuschange schandlerid=1 status=1")
        with self.assertRaises(ProtocolError):
            self.apply("notifytalkstatuschange schandlerid=1 clid=7")

    def test_talk_status_not_a_number(self):
        with self.assertRaises(ProtocolError):
            self.apply("notifytalkstatuschange schandlerid=1 status=yes clid=7")

    def test_client_moved(self):
        self.assertFalse(self.apply("notifyclientmoved schandlerid=1 ctid=3 reasonid=0 clid=7"))
        self.assertEqual(self.roster.get('7').channel_id, '3')

    def test_enter_view_requests_refresh(self):
        self.assertTrue(self.apply("notifycliententerview schandlerid=1 ctid=1 clid=12 client_nickname=Carol"))

    def test_updated_requests_refresh(self):
        self.assertTrue(self.apply("notifyclientupdated schandlerid=1 clid=7 client_nickname=#61\\sJeff"))

    def test_left_view_removes_and_requests_refresh(self):
        self.assertTrue(self.apply("notifyclientleftview schandlerid=1 cfid=1 ctid=0 reasonid=8 clid=9"))
        self.assertNotIn('9', self.roster)

    def test_left_view_multiple_records(self):
        self.apply("notifyclientleftview schandlerid=1 clid=9|clid=7")
        self.assertEqual(len(self.roster), 0)

    def test_unknown_notification_ignored(self):
        self.assertFalse(self.apply("notifytextmessage schandlerid=1 msg=hi"))
        self.assertFalse(self.roster.apply_notification([]))


if __name__ == '__main__':
    unittest.main()
