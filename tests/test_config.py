"""
Tests for engraver settings.
"""

import unittest

from ezburn.config import (
    EngraverSettings, NEJE_OPCODES, IMAGE_BYTES, ERASE_TIME_MS, DEFAULT_CHUNK_SIZE
)


class TestEngraverSettings(unittest.TestCase):
    """Test EngraverSettings."""

    def test_defaults(self):
        settings = EngraverSettings()
        self.assertEqual(settings.chunk_size, DEFAULT_CHUNK_SIZE)
        self.assertEqual(settings.erase_delay_ms, ERASE_TIME_MS)
        self.assertEqual(settings.opcodes, NEJE_OPCODES)
        self.assertEqual(IMAGE_BYTES, 32768)

    def test_defaults_are_valid(self):
        is_valid, error = EngraverSettings().validate()
        self.assertTrue(is_valid)
        self.assertEqual(error, "")

    def test_invalid_values(self):
        for settings in (EngraverSettings(chunk_size=0),
                         EngraverSettings(baudrate=0),
                         EngraverSettings(erase_delay_ms=-1),
                         EngraverSettings(write_timeout=-0.5),
                         EngraverSettings(opcodes=dict(NEJE_OPCODES, erase=0x100))):
            is_valid, error = settings.validate()
            self.assertFalse(is_valid)
            self.assertNotEqual(error, "")

    def test_opcode_tables_not_shared(self):
        a = EngraverSettings()
        a.opcodes['erase'] = 0x00
        self.assertEqual(EngraverSettings().opcodes['erase'], 0xFE)
        self.assertEqual(NEJE_OPCODES['erase'], 0xFE)

    def test_dict_round_trip(self):
        settings = EngraverSettings(chunk_size=512, erase_delay_ms=7000)
        restored = EngraverSettings.from_dict(settings.to_dict())
        self.assertEqual(restored, settings)

    def test_from_dict_ignores_unknown_keys(self):
        settings = EngraverSettings.from_dict({'chunk_size': 64, 'colour': 'red'})
        self.assertEqual(settings.chunk_size, 64)

    def test_partial_opcode_table(self):
        settings = EngraverSettings.from_dict({'opcodes': {'erase': 0x10}})
        self.assertEqual(settings.opcodes['erase'], 0x10)
        self.assertEqual(settings.opcodes['start'], 0xF1)


if __name__ == '__main__':
    unittest.main()
