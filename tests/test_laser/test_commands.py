"""
Tests for command encoding.
"""

import unittest

from ezburn.config import NEJE_OPCODES
from ezburn.laser.commands import Command, CommandEncoder, CommandKind


class TestCommand(unittest.TestCase):
    """Test Command construction."""

    def test_start_requires_byte_burn_time(self):
        self.assertEqual(Command.start(0).burn_time, 0)
        self.assertEqual(Command.start(255).burn_time, 255)
        with self.assertRaises(ValueError):
            Command.start(256)
        with self.assertRaises(ValueError):
            Command.start(-1)

    def test_start_without_burn_time_rejected(self):
        with self.assertRaises(ValueError):
            Command(CommandKind.START)

    def test_plain_command_rejects_payload(self):
        with self.assertRaises(ValueError):
            Command(CommandKind.HOME, 10)

    def test_jog_directions(self):
        self.assertEqual(Command.jog('up').kind, CommandKind.JOG_UP)
        self.assertEqual(Command.jog('DOWN').kind, CommandKind.JOG_DOWN)
        self.assertEqual(Command.jog('left').kind, CommandKind.JOG_LEFT)
        self.assertEqual(Command.jog('right').kind, CommandKind.JOG_RIGHT)
        with self.assertRaises(ValueError):
            Command.jog('sideways')

    def test_commands_are_values(self):
        self.assertEqual(Command.start(10), Command.start(10))
        self.assertNotEqual(Command.start(10), Command.start(11))
        self.assertEqual(Command.pause(), Command(CommandKind.PAUSE))


class TestCommandEncoder(unittest.TestCase):
    """Test CommandEncoder."""

    def setUp(self):
        self.encoder = CommandEncoder()

    def test_start_differs_only_in_burn_time(self):
        """Start(128) and Start(200) differ in the payload byte alone."""
        a = self.encoder.encode(Command.start(128))
        b = self.encoder.encode(Command.start(200))
        self.assertEqual(len(a), len(b))
        differing = [i for i in range(len(a)) if a[i] != b[i]]
        self.assertEqual(len(differing), 1)
        self.assertEqual(a[differing[0]], 128)
        self.assertEqual(b[differing[0]], 200)

    def test_start_layout(self):
        self.assertEqual(self.encoder.encode(Command.start(60)), bytes([60, 0xF1]))

    def test_single_byte_commands(self):
        """Commands without payload are their opcode."""
        cases = {
            Command.pause(): 0xF2,
            Command.home(): 0xF3,
            Command.preview(): 0xF4,
            Command.jog('up'): 0xF5,
            Command.jog('down'): 0xF6,
            Command.jog('left'): 0xF7,
            Command.jog('right'): 0xF8,
            Command.reset(): 0xF9,
            Command.center(): 0xFB,
            Command.erase(): 0xFE,
        }
        for command, opcode in cases.items():
            self.assertEqual(self.encoder.encode(command), bytes([opcode]))

    def test_encoding_is_deterministic(self):
        command = Command.erase()
        self.assertEqual(self.encoder.encode(command), self.encoder.encode(command))
        self.assertIsInstance(self.encoder.encode(command), bytes)

    def test_custom_opcode_table(self):
        table = dict(NEJE_OPCODES, erase=0x42)
        encoder = CommandEncoder(table)
        self.assertEqual(encoder.encode(Command.erase()), b'\x42')
        self.assertEqual(encoder.encode(Command.home()), b'\xf3')

    def test_incomplete_table_rejected(self):
        table = dict(NEJE_OPCODES)
        del table['center']
        with self.assertRaises(KeyError):
            CommandEncoder(table)


if __name__ == '__main__':
    unittest.main()
